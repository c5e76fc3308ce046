"""Recipe catalog: the shared, append-only recipe collection as seen by one session.

The catalog never adds recipes to its own mirror. A successful add_recipe shows
up once the gateway delivers the next collection snapshot.
"""
import logging
from typing import Dict, Iterable, List, Optional

from mealplan.domain.Recipe import Recipe
from mealplan.domain.errors import StaleReferenceError, ValidationError
from mealplan.infra.Sync_Gateway import Snapshot, SyncGateway
from mealplan.utilities.constants import RECIPES_KEY

logger = logging.getLogger(__name__)


class RecipeCatalog:
    def __init__(self, gateway: SyncGateway, resource_key: str = RECIPES_KEY):
        self.gateway = gateway
        self.resource_key = resource_key
        self.version = 0
        self._recipes: List[Recipe] = []
        self._index: Dict[str, Recipe] = {}

    # --- Writes ---------------------------------------------------------------
    async def add_recipe(self, name: str, ingredients: Optional[Iterable[str]] = None) -> str:
        """Validate and append a recipe; returns the gateway-assigned id.

        Raises ValidationError for a blank name or a blank/non-string
        ingredient. An empty ingredient list is accepted.
        """
        clean_name = name.strip() if isinstance(name, str) else ""
        if not clean_name:
            raise ValidationError("Recipe name cannot be empty")
        if isinstance(ingredients, str):
            raise ValidationError("Ingredients must be a list of strings, not a single string")
        ingredient_list = list(ingredients or [])
        for ingredient in ingredient_list:
            if not isinstance(ingredient, str) or not ingredient.strip():
                raise ValidationError(f"Invalid ingredient entry: {ingredient!r}")

        recipe = Recipe(name=clean_name, ingredients=ingredient_list)
        recipe_id = await self.gateway.append_to_collection(self.resource_key, recipe.to_dict())
        logger.info("Added recipe %r as %s (%d ingredient(s))", clean_name, recipe_id, len(ingredient_list))
        return recipe_id

    # --- Mirror -----------------------------------------------------------------
    def apply_snapshot(self, snapshot: Snapshot) -> bool:
        if snapshot.version < self.version:
            logger.debug("Ignoring stale catalog snapshot v%d (have v%d)", snapshot.version, self.version)
            return False
        records = snapshot.value if isinstance(snapshot.value, list) else []
        self._recipes = [Recipe.from_dict(r) for r in records]
        self._index = {r.id: r for r in self._recipes if r.id}
        self.version = snapshot.version
        return True

    async def load(self) -> "RecipeCatalog":
        self.apply_snapshot(await self.gateway.read_once(self.resource_key))
        return self

    def reset(self):
        self._recipes = []
        self._index = {}
        self.version = 0

    # --- Reads ------------------------------------------------------------------
    def list_recipes(self) -> List[Recipe]:
        return list(self._recipes)

    def find_by_id(self, recipe_id) -> Optional[Recipe]:
        return self._index.get(recipe_id)

    def require(self, recipe_id) -> Recipe:
        recipe = self._index.get(recipe_id)
        if recipe is None:
            raise StaleReferenceError(recipe_id)
        return recipe

    def name_of(self, recipe_id) -> Optional[str]:
        recipe = self._index.get(recipe_id)
        return recipe.name if recipe else None

    def filter_by_name(self, query: str) -> List[Recipe]:
        """Case-insensitive substring match on the recipe name; blank query matches all."""
        needle = (query or "").strip().lower()
        if not needle:
            return self.list_recipes()
        return [r for r in self._recipes if needle in r.name.lower()]

    def __len__(self) -> int:
        return len(self._recipes)
