import asyncio
import pytest
from mealplan.domain.errors import GatewayUnavailableError, NotSignedInError
from mealplan.events.Event_Bus import EventBus, SYNC_ERROR
from mealplan.infra.Session_Provider import Identity, LocalSessionProvider
from mealplan.infra.Sync_Gateway import LocalSyncGateway
from mealplan.logic.planner_client import PlannerClient
from mealplan.utilities.constants import PLAN_KEY, POLICY_REBASE, RECIPES_KEY


async def settle(rounds: int = 20):
    """Let subscription tasks drain their queues."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def gateway(bus):
    return LocalSyncGateway(event_bus=bus)


async def signed_in_client(gateway, bus, uid="u1", name="Anna"):
    session = LocalSessionProvider()
    client = PlannerClient(gateway, session, conflict_policy=POLICY_REBASE, event_bus=bus).start()
    session.sign_in(Identity(uid, name))
    await asyncio.wait_for(client.ready(), 1)
    return client


@pytest.mark.asyncio
async def test_actions_require_identity(gateway, bus):
    client = PlannerClient(gateway, LocalSessionProvider(), event_bus=bus).start()
    with pytest.raises(NotSignedInError):
        await client.add_recipe("Pasta", ["pasta"])
    with pytest.raises(NotSignedInError):
        await client.assign("Lunedì", "pranzo", "r1")
    with pytest.raises(NotSignedInError):
        await client.generate_shopping_list()
    assert gateway.subscriber_count(PLAN_KEY) == 0
    await client.stop()


@pytest.mark.asyncio
async def test_full_session_flow(gateway, bus):
    client = await signed_in_client(gateway, bus)

    pasta = await client.add_recipe("Pasta", ["tomato", "pasta"])
    salad = await client.add_recipe("Salad", ["lettuce", "tomato"])
    await settle()
    assert [r.name for r in client.recipes()] == ["Pasta", "Salad"]
    assert [r.id for r in client.search_recipes("sal")] == [salad]

    await client.assign("Lunedì", "pranzo", pasta)
    await client.assign("Martedì", "cena", salad)
    assert await client.generate_shopping_list() == ["tomato", "pasta", "lettuce"]
    await settle()
    assert client.shopping_list == ["tomato", "pasta", "lettuce"]
    assert client.recipe_name(client.plan.get("Martedì", "cena")) == "Salad"

    assert await client.clear_shopping_list() == []
    await settle()
    assert client.shopping_list == []
    await client.stop()


@pytest.mark.asyncio
async def test_changes_from_other_sessions_are_mirrored(gateway, bus):
    anna = await signed_in_client(gateway, bus)
    marco = await signed_in_client(gateway, bus, uid="u2", name="Marco")

    recipe_id = await anna.add_recipe("Risotto", ["rice"])
    await settle()
    assert marco.catalog.find_by_id(recipe_id) is not None

    await marco.assign("Giovedì", "cena", recipe_id)
    await settle()
    assert anna.plan.get("Giovedì", "cena") == recipe_id

    await anna.generate_shopping_list()
    await settle()
    assert marco.shopping_list == ["rice"]

    await anna.stop()
    await marco.stop()


@pytest.mark.asyncio
async def test_shopping_list_is_a_snapshot(gateway, bus):
    client = await signed_in_client(gateway, bus)
    recipe_id = await client.add_recipe("Soup", ["leek"])
    await settle()
    await client.assign("Venerdì", "cena", recipe_id)
    await client.generate_shopping_list()
    await client.assign("Venerdì", "cena", "")
    await settle()
    # Clearing the plan does not touch the generated list
    assert client.shopping_list == ["leek"]
    await client.stop()


@pytest.mark.asyncio
async def test_sign_out_releases_subscriptions_and_resets(gateway, bus):
    session = LocalSessionProvider()
    client = PlannerClient(gateway, session, event_bus=bus).start()
    session.sign_in(Identity("u1", "Anna"))
    await client.ready()
    recipe_id = await client.add_recipe("Pasta", ["pasta"])
    await client.assign("Lunedì", "pranzo", recipe_id)
    await settle()
    assert gateway.subscriber_count(RECIPES_KEY) == 1

    session.sign_out()
    await settle()
    assert gateway.subscriber_count(RECIPES_KEY) == 0
    assert gateway.subscriber_count(PLAN_KEY) == 0
    assert client.recipes() == []
    assert client.plan.is_empty()
    with pytest.raises(NotSignedInError):
        await client.assign("Lunedì", "cena", recipe_id)

    # Signing back in picks up the shared state again
    session.sign_in(Identity("u1", "Anna"))
    await client.ready()
    assert client.plan.get("Lunedì", "pranzo") == recipe_id
    await client.stop()


@pytest.mark.asyncio
async def test_ready_raises_when_gateway_is_down_at_sign_in(gateway, bus):
    session = LocalSessionProvider()
    client = PlannerClient(gateway, session, event_bus=bus).start()
    gateway.disconnect()
    session.sign_in(Identity("u1", "Anna"))
    with pytest.raises(GatewayUnavailableError):
        await asyncio.wait_for(client.ready(), 1)
    await client.stop()


@pytest.mark.asyncio
async def test_lost_gateway_is_reported(gateway, bus):
    errors = []
    bus.subscribe(SYNC_ERROR, lambda _name, payload: errors.append(payload["key"]))
    client = await signed_in_client(gateway, bus)

    gateway.disconnect()
    await settle()
    assert isinstance(client.last_sync_error, GatewayUnavailableError)
    assert sorted(errors) == sorted(["recipes", "mealPlans/sharedPlan", "shoppingLists/sharedList"])

    with pytest.raises(GatewayUnavailableError):
        await client.assign("Domenica", "pranzo", "r1")
    assert client.plan.get("Domenica", "pranzo") == "r1"
    await client.stop()
