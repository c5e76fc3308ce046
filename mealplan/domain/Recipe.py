"""Recipe domain entity: gateway-assigned id, display name, ingredient strings."""
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class Recipe:
    def __init__(self, id: str = "", name: str = "", ingredients: Optional[List[str]] = None):
        self.id = id
        self.name = name
        # Order and duplicates are part of the recipe
        self.ingredients = list(ingredients) if ingredients else []

    def __str__(self) -> str:
        return f"{self.name} ({self.id}) - Ingredients: {', '.join(self.ingredients)}"

    __repr__ = __str__

    def __eq__(self, other) -> bool:
        if not isinstance(other, Recipe):
            return NotImplemented
        return (self.id, self.name, self.ingredients) == (other.id, other.name, other.ingredients)

    def __hash__(self) -> int:
        return hash(self.id)

    @staticmethod
    def from_dict(data):
        '''Creates a Recipe from a stored record. Unknown keys are dropped.'''
        d = dict(data) if isinstance(data, dict) else {}
        raw_ingredients = d.get("ingredients") or []
        if not isinstance(raw_ingredients, (list, tuple)):
            raw_ingredients = []
        ingredients = [i for i in raw_ingredients if isinstance(i, str) and i.strip()]
        if len(ingredients) != len(raw_ingredients):
            logger.debug("Dropped %d malformed ingredient(s) from recipe %s",
                         len(raw_ingredients) - len(ingredients), d.get("id"))
        name = d.get("name")
        return Recipe(
            id=str(d.get("id") or ""),
            name=name if isinstance(name, str) else "",
            ingredients=ingredients,
        )

    def to_dict(self):
        '''Record stored in the recipes collection; the id lives on the entry key.'''
        return {
            "name": self.name,
            "ingredients": list(self.ingredients),
        }
