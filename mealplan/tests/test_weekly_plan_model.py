import pytest
from mealplan.domain.Plan import WeeklyPlan
from mealplan.domain.errors import GatewayUnavailableError, InvalidSlotError, VersionConflictError
from mealplan.events.Event_Bus import EventBus
from mealplan.infra.Sync_Gateway import LocalSyncGateway
from mealplan.logic.planning.weekly_plan import WeeklyPlanModel
from mealplan.utilities.constants import (
    PLAN_KEY, POLICY_LAST_WRITE_WINS, POLICY_REBASE, POLICY_REJECT
)


@pytest.fixture
def gateway():
    return LocalSyncGateway(event_bus=EventBus())


async def stored_plan(gateway) -> WeeklyPlan:
    return WeeklyPlan.from_dict((await gateway.read_once(PLAN_KEY)).value)


@pytest.mark.asyncio
async def test_assign_changes_one_cell_and_writes_full_document(gateway):
    model = await WeeklyPlanModel(gateway).load()
    await model.assign("Lunedì", "pranzo", "r1")
    plan = await model.assign("Martedì", "cena", "r2")

    assert plan.to_dict() == {"Lunedì": {"pranzo": "r1"}, "Martedì": {"cena": "r2"}}
    assert await stored_plan(gateway) == plan
    assert model.version == 2


@pytest.mark.asyncio
async def test_assign_empty_clears_cell(gateway):
    model = await WeeklyPlanModel(gateway).load()
    await model.assign("Lunedì", "pranzo", "r1")
    plan = await model.assign("Lunedì", "pranzo", "")
    assert plan.get("Lunedì", "pranzo") is None
    assert (await gateway.read_once(PLAN_KEY)).value == {}


@pytest.mark.asyncio
async def test_invalid_slot_leaves_plan_untouched(gateway):
    model = await WeeklyPlanModel(gateway).load()
    await model.assign("Lunedì", "pranzo", "r1")
    with pytest.raises(InvalidSlotError):
        await model.assign("Funday", "pranzo", "r1")
    assert model.plan.to_dict() == {"Lunedì": {"pranzo": "r1"}}
    assert (await gateway.read_once(PLAN_KEY)).version == 1


@pytest.mark.asyncio
async def test_last_write_wins_loses_concurrent_edit(gateway):
    anna = await WeeklyPlanModel(gateway, conflict_policy=POLICY_LAST_WRITE_WINS).load()
    marco = await WeeklyPlanModel(gateway, conflict_policy=POLICY_LAST_WRITE_WINS).load()

    await anna.assign("Lunedì", "pranzo", "r1")
    await marco.assign("Martedì", "cena", "r2")  # marco never saw anna's write

    stored = await stored_plan(gateway)
    assert stored.get("Lunedì", "pranzo") is None
    assert stored.get("Martedì", "cena") == "r2"


@pytest.mark.asyncio
async def test_reject_policy_surfaces_conflict(gateway):
    anna = await WeeklyPlanModel(gateway, conflict_policy=POLICY_REJECT).load()
    marco = await WeeklyPlanModel(gateway, conflict_policy=POLICY_REJECT).load()

    await anna.assign("Lunedì", "pranzo", "r1")
    with pytest.raises(VersionConflictError):
        await marco.assign("Martedì", "cena", "r2")

    assert (await stored_plan(gateway)).to_dict() == {"Lunedì": {"pranzo": "r1"}}
    # The optimistic local change is not rolled back
    assert marco.plan.get("Martedì", "cena") == "r2"


@pytest.mark.asyncio
async def test_rebase_policy_keeps_both_edits(gateway):
    anna = await WeeklyPlanModel(gateway, conflict_policy=POLICY_REBASE).load()
    marco = await WeeklyPlanModel(gateway, conflict_policy=POLICY_REBASE).load()

    await anna.assign("Lunedì", "pranzo", "r1")
    plan = await marco.assign("Martedì", "cena", "r2")

    expected = {"Lunedì": {"pranzo": "r1"}, "Martedì": {"cena": "r2"}}
    assert plan.to_dict() == expected
    assert (await stored_plan(gateway)).to_dict() == expected
    assert marco.version == 2


class AlwaysConflictingGateway(LocalSyncGateway):
    async def write_if_version(self, resource_key, value, expected_version):
        raise VersionConflictError(resource_key, expected_version, expected_version + 1)


@pytest.mark.asyncio
async def test_rebase_gives_up_after_configured_attempts():
    gateway = AlwaysConflictingGateway(event_bus=EventBus())
    model = WeeklyPlanModel(gateway, conflict_policy=POLICY_REBASE, rebase_attempts=2)
    with pytest.raises(VersionConflictError):
        await model.assign("Lunedì", "pranzo", "r1")


@pytest.mark.asyncio
async def test_failed_write_keeps_optimistic_update(gateway):
    model = await WeeklyPlanModel(gateway).load()
    gateway.disconnect()
    with pytest.raises(GatewayUnavailableError):
        await model.assign("Sabato", "cena", "r7")
    assert model.plan.get("Sabato", "cena") == "r7"


def test_unknown_policy(gateway):
    with pytest.raises(ValueError):
        WeeklyPlanModel(gateway, conflict_policy="merge-everything")
