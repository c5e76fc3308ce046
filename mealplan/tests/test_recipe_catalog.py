import pytest
from mealplan.domain.errors import StaleReferenceError, ValidationError
from mealplan.events.Event_Bus import EventBus
from mealplan.infra.Sync_Gateway import LocalSyncGateway, Snapshot
from mealplan.logic.catalog.recipe_catalog import RecipeCatalog
from mealplan.utilities.constants import RECIPES_KEY


@pytest.fixture
def gateway():
    return LocalSyncGateway(event_bus=EventBus())


@pytest.mark.asyncio
async def test_add_recipe_is_visible_after_reload(gateway):
    catalog = RecipeCatalog(gateway)
    recipe_id = await catalog.add_recipe("  Pasta al pomodoro ", ["tomato", "pasta", "tomato"])
    # Not mirrored until the next snapshot arrives
    assert catalog.find_by_id(recipe_id) is None

    await catalog.load()
    recipe = catalog.find_by_id(recipe_id)
    assert recipe.name == "Pasta al pomodoro"
    assert recipe.ingredients == ["tomato", "pasta", "tomato"]


@pytest.mark.asyncio
async def test_recipe_without_ingredients_is_valid(gateway):
    catalog = RecipeCatalog(gateway)
    recipe_id = await catalog.add_recipe("Leftovers", [])
    await catalog.load()
    assert catalog.find_by_id(recipe_id).ingredients == []


@pytest.mark.asyncio
@pytest.mark.parametrize("name, ingredients", [
    ("", ["tomato"]),
    ("   ", ["tomato"]),
    (None, []),
    ("Pasta", ["tomato", ""]),
    ("Pasta", ["tomato", 3]),
    ("Pasta", "tomato"),
])
async def test_invalid_recipe_is_rejected_before_writing(gateway, name, ingredients):
    catalog = RecipeCatalog(gateway)
    with pytest.raises(ValidationError):
        await catalog.add_recipe(name, ingredients)
    assert (await gateway.read_once(RECIPES_KEY)).version == 0


def _catalog_with(*records, version=1):
    catalog = RecipeCatalog(gateway=None)
    catalog.apply_snapshot(Snapshot(RECIPES_KEY, list(records), version))
    return catalog


def test_find_by_id_and_require():
    catalog = _catalog_with({"id": "r1", "name": "Pasta", "ingredients": []})
    assert catalog.find_by_id("r1").name == "Pasta"
    assert catalog.find_by_id("missing") is None
    assert catalog.name_of("missing") is None
    with pytest.raises(StaleReferenceError):
        catalog.require("missing")


def test_filter_by_name_is_case_insensitive_substring():
    catalog = _catalog_with(
        {"id": "r1", "name": "Pasta al pomodoro"},
        {"id": "r2", "name": "Insalata di pasta"},
        {"id": "r3", "name": "Risotto"},
    )
    assert [r.id for r in catalog.filter_by_name("PASTA")] == ["r1", "r2"]
    assert [r.id for r in catalog.filter_by_name("sott")] == ["r3"]
    assert catalog.filter_by_name("pizza") == []
    assert len(catalog.filter_by_name("")) == 3
    assert len(catalog.filter_by_name("   ")) == 3


def test_stale_snapshot_is_ignored():
    catalog = _catalog_with({"id": "r1", "name": "Pasta"}, {"id": "r2", "name": "Salad"}, version=2)
    assert not catalog.apply_snapshot(Snapshot(RECIPES_KEY, [{"id": "r1", "name": "Pasta"}], 1))
    assert len(catalog) == 2
    assert [r.id for r in catalog.list_recipes()] == ["r1", "r2"]
