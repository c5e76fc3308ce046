"""Persisted shared shopping list, regenerated or cleared on demand by any session."""
import logging
from typing import List

from mealplan.domain.ShoppingList import ShoppingList
from mealplan.infra.Sync_Gateway import Snapshot, SyncGateway
from mealplan.logic.catalog.recipe_catalog import RecipeCatalog
from mealplan.logic.planning.weekly_plan import WeeklyPlanModel
from mealplan.logic.shopping import list_builder
from mealplan.utilities.constants import SHOPPING_LIST_KEY

logger = logging.getLogger(__name__)


class ShoppingListModel:
    def __init__(self, gateway: SyncGateway, plan_model: WeeklyPlanModel, catalog: RecipeCatalog,
                 resource_key: str = SHOPPING_LIST_KEY):
        self.gateway = gateway
        self.plan_model = plan_model
        self.catalog = catalog
        self.resource_key = resource_key
        self.shopping_list = ShoppingList()
        self.version = 0

    def apply_snapshot(self, snapshot: Snapshot) -> bool:
        if snapshot.version < self.version:
            return False
        self.shopping_list = ShoppingList.from_dict(snapshot.value)
        self.version = snapshot.version
        return True

    async def load(self) -> "ShoppingListModel":
        self.apply_snapshot(await self.gateway.read_once(self.resource_key))
        return self

    def reset(self):
        self.shopping_list = ShoppingList()
        self.version = 0

    def get_items(self) -> List[str]:
        return self.shopping_list.get_items()

    async def regenerate(self) -> List[str]:
        items = list_builder.generate(self.plan_model.plan, self.catalog)
        await self._save(items)
        logger.info("Shopping list regenerated with %d item(s)", len(items))
        return items

    async def clear(self) -> List[str]:
        items = list_builder.clear()
        await self._save(items)
        logger.info("Shopping list cleared")
        return items

    async def _save(self, items: List[str]):
        self.shopping_list = ShoppingList(items)
        version = await self.gateway.write_document(self.resource_key, self.shopping_list.to_dict())
        self.version = max(self.version, version)
