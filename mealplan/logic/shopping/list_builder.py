"""Shopping list builder.

generate(plan, catalog) walks the week in calendar order, then the meals in
their fixed order, and collects every ingredient of every resolvable recipe.
Ingredients are compared as exact strings; the first occurrence decides the
position. Cells pointing at recipes missing from the catalog are skipped.
"""
import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List

from mealplan.domain.Plan import WeeklyPlan
from mealplan.domain.Recipe import Recipe
from mealplan.domain.errors import StaleReferenceError

logger = logging.getLogger(__name__)


def _resolver(catalog: Any) -> Callable[[str], Recipe]:
    """Accepts a RecipeCatalog, a mapping id -> Recipe, or an iterable of Recipe."""
    if hasattr(catalog, "require"):
        return catalog.require
    if isinstance(catalog, Mapping):
        index = catalog
    else:
        index = {r.id: r for r in (catalog or [])}

    def require(recipe_id: str) -> Recipe:
        recipe = index.get(recipe_id)
        if recipe is None:
            raise StaleReferenceError(recipe_id)
        return recipe

    return require


def generate(plan, catalog) -> List[str]:
    if not isinstance(plan, WeeklyPlan):
        plan = WeeklyPlan.from_dict(plan)
    require = _resolver(catalog)

    items: Dict[str, None] = {}
    for day, meal, recipe_id in plan.cells():
        if not recipe_id:
            continue
        try:
            recipe = require(recipe_id)
        except StaleReferenceError:
            logger.debug("Skipping %s/%s: recipe %s no longer exists", day, meal, recipe_id)
            continue
        for ingredient in recipe.ingredients:
            items.setdefault(ingredient, None)
    return list(items)


def clear() -> List[str]:
    return []


__all__ = ['generate', 'clear']
