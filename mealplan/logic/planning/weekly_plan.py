"""Weekly plan model: one shared plan document, mirrored locally and edited cell by cell.

Each assignment writes the whole document. What happens when two sessions
write concurrently depends on the conflict policy:

  last_write_wins  unconditional write; the later writer also overwrites cells
                   it never touched (the historical behavior)
  reject           conditional write against the last version this session saw;
                   a conflict is raised to the caller
  rebase           conditional write; on conflict re-read the document, replay
                   only this cell on top of it and try again
"""
import logging
from typing import Optional

from mealplan.domain.Plan import WeeklyPlan, validate_slot
from mealplan.domain.errors import VersionConflictError
from mealplan.infra.Sync_Gateway import Snapshot, SyncGateway
from mealplan.utilities.config import PLAN_CONFLICT_POLICY, PLAN_REBASE_ATTEMPTS
from mealplan.utilities.constants import (
    CONFLICT_POLICIES, PLAN_KEY, POLICY_LAST_WRITE_WINS, POLICY_REJECT
)

logger = logging.getLogger(__name__)


class WeeklyPlanModel:
    def __init__(self, gateway: SyncGateway, resource_key: str = PLAN_KEY,
                 conflict_policy: str = PLAN_CONFLICT_POLICY,
                 rebase_attempts: int = PLAN_REBASE_ATTEMPTS):
        if conflict_policy not in CONFLICT_POLICIES:
            raise ValueError(f"Unknown conflict policy: {conflict_policy}")
        self.gateway = gateway
        self.resource_key = resource_key
        self.conflict_policy = conflict_policy
        self.rebase_attempts = max(1, rebase_attempts)
        self.plan = WeeklyPlan()
        self.version = 0

    def apply_snapshot(self, snapshot: Snapshot) -> bool:
        '''Adopts the authoritative document unless it is older than what we hold.'''
        if snapshot.version < self.version:
            logger.debug("Ignoring stale plan snapshot v%d (have v%d)", snapshot.version, self.version)
            return False
        self.plan = WeeklyPlan.from_dict(snapshot.value)
        self.version = snapshot.version
        return True

    async def load(self) -> "WeeklyPlanModel":
        self.apply_snapshot(await self.gateway.read_once(self.resource_key))
        return self

    def reset(self):
        self.plan = WeeklyPlan()
        self.version = 0

    async def assign(self, day: str, meal: str, recipe_id: Optional[str] = None) -> WeeklyPlan:
        """Set (or clear, for an empty id) one cell and write the plan through the gateway.

        InvalidSlotError is raised before anything changes. The new plan is
        adopted locally before the write; a failed write leaves it in place.
        """
        validate_slot(day, meal)
        expected_version = self.version
        self.plan = self.plan.with_assignment(day, meal, recipe_id)

        if self.conflict_policy == POLICY_LAST_WRITE_WINS:
            version = await self.gateway.write_document(self.resource_key, self.plan.to_dict())
        else:
            try:
                version = await self.gateway.write_if_version(
                    self.resource_key, self.plan.to_dict(), expected_version)
            except VersionConflictError as conflict:
                if self.conflict_policy == POLICY_REJECT:
                    logger.warning("Plan write rejected: %s", conflict)
                    raise
                version = await self._rebase(day, meal, recipe_id, conflict)

        self.version = max(self.version, version)
        logger.info("Assigned %s/%s -> %s (plan v%d)", day, meal, recipe_id or "-", self.version)
        return self.plan

    async def _rebase(self, day: str, meal: str, recipe_id: Optional[str],
                      conflict: VersionConflictError) -> int:
        for attempt in range(1, self.rebase_attempts + 1):
            logger.info("Rebasing %s/%s after %s (attempt %d)", day, meal, conflict, attempt)
            fresh = await self.gateway.read_once(self.resource_key)
            self.apply_snapshot(fresh)
            self.plan = self.plan.with_assignment(day, meal, recipe_id)
            try:
                return await self.gateway.write_if_version(
                    self.resource_key, self.plan.to_dict(), fresh.version)
            except VersionConflictError as e:
                conflict = e
        logger.error("Giving up on %s/%s after %d rebase attempt(s)", day, meal, self.rebase_attempts)
        raise conflict
