"""Per-session planner: mirrors the shared resources while someone is signed in.

Signing in subscribes the recipe collection, the plan document and the
shopping list document (one asyncio task each). Signing out cancels those
subscriptions and empties the local mirrors. Writes issued from this client
come back through the same subscriptions, like changes from any other session.
"""
import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional

from mealplan.domain.Plan import WeeklyPlan
from mealplan.domain.Recipe import Recipe
from mealplan.domain.errors import GatewayUnavailableError, NotSignedInError
from mealplan.events.Event_Bus import EventBus
from mealplan.events.event_helpers import publish_sync_error
from mealplan.infra.Session_Provider import Identity, LocalSessionProvider
from mealplan.infra.Sync_Gateway import Snapshot, SyncGateway
from mealplan.logic.catalog.recipe_catalog import RecipeCatalog
from mealplan.logic.planning.weekly_plan import WeeklyPlanModel
from mealplan.logic.shopping.list_model import ShoppingListModel
from mealplan.utilities.config import PLAN_CONFLICT_POLICY

logger = logging.getLogger(__name__)


class PlannerClient:
    def __init__(self, gateway: SyncGateway, session: LocalSessionProvider,
                 conflict_policy: str = PLAN_CONFLICT_POLICY, event_bus: Optional[EventBus] = None):
        self.gateway = gateway
        self.session = session
        self.catalog = RecipeCatalog(gateway)
        self.plan_model = WeeklyPlanModel(gateway, conflict_policy=conflict_policy)
        self.shopping = ShoppingListModel(gateway, self.plan_model, self.catalog)
        self.identity: Optional[Identity] = None
        self.last_sync_error: Optional[Exception] = None
        self._event_bus = event_bus  # None publishes on the global bus
        self._tasks: Dict[str, asyncio.Task] = {}
        self._synced: Dict[str, asyncio.Event] = {}
        self._unsubscribe_session: Optional[Callable[[], None]] = None

    # --- Lifecycle ----------------------------------------------------------
    def start(self) -> "PlannerClient":
        """Listen for identity changes. Call from inside the running event loop."""
        if self._unsubscribe_session is None:
            self._unsubscribe_session = self.session.on_identity_change(self._on_identity)
        return self

    async def stop(self):
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        tasks = self._stop_mirrors()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def ready(self):
        """Wait until every mirrored resource has received its first snapshot.

        Raises the recorded GatewayUnavailableError if a subscription failed.
        """
        self._require_identity()
        await asyncio.gather(*(event.wait() for event in self._synced.values()))
        if self.last_sync_error is not None:
            raise self.last_sync_error

    def _on_identity(self, identity: Optional[Identity]):
        self.identity = identity
        if identity is None:
            self._stop_mirrors()
            self.catalog.reset()
            self.plan_model.reset()
            self.shopping.reset()
        elif not self._tasks:
            self._start_mirrors()

    def _start_mirrors(self):
        loop = asyncio.get_running_loop()
        self.last_sync_error = None
        for model in (self.catalog, self.plan_model, self.shopping):
            key = model.resource_key
            self._synced[key] = asyncio.Event()
            self._tasks[key] = loop.create_task(self._mirror(key, model.apply_snapshot))
        logger.info("Mirroring %s for %s", ", ".join(self._tasks), self.identity)

    def _stop_mirrors(self) -> List[asyncio.Task]:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        self._tasks.clear()
        self._synced.clear()
        return tasks

    async def _mirror(self, key: str, apply: Callable[[Snapshot], bool]):
        try:
            async for snapshot in self.gateway.subscribe(key):
                apply(snapshot)
                synced = self._synced.get(key)
                if synced is not None:
                    synced.set()
        except GatewayUnavailableError as e:
            logger.error("Subscription to %s failed: %s", key, e)
            self.last_sync_error = e
            publish_sync_error(key, e, bus=self._event_bus)
            synced = self._synced.get(key)
            if synced is not None:
                synced.set()

    def _require_identity(self) -> Identity:
        if self.identity is None:
            raise NotSignedInError("Sign in to use the shared planner")
        return self.identity

    # --- Reads ----------------------------------------------------------------
    @property
    def plan(self) -> WeeklyPlan:
        return self.plan_model.plan

    @property
    def shopping_list(self) -> List[str]:
        return self.shopping.get_items()

    def recipes(self) -> List[Recipe]:
        return self.catalog.list_recipes()

    def search_recipes(self, query: str) -> List[Recipe]:
        return self.catalog.filter_by_name(query)

    def recipe_name(self, recipe_id: Optional[str]) -> Optional[str]:
        return self.catalog.name_of(recipe_id) if recipe_id else None

    # --- Actions --------------------------------------------------------------
    async def add_recipe(self, name: str, ingredients: Optional[Iterable[str]] = None) -> str:
        self._require_identity()
        return await self.catalog.add_recipe(name, ingredients)

    async def assign(self, day: str, meal: str, recipe_id: Optional[str] = None) -> WeeklyPlan:
        self._require_identity()
        return await self.plan_model.assign(day, meal, recipe_id)

    async def generate_shopping_list(self) -> List[str]:
        self._require_identity()
        return await self.shopping.regenerate()

    async def clear_shopping_list(self) -> List[str]:
        self._require_identity()
        return await self.shopping.clear()
