"""WeeklyPlan domain value: day -> meal -> recipe id, unassigned cells are absent."""
import logging
from typing import Dict, Iterator, Optional, Tuple

from mealplan.domain.errors import InvalidSlotError
from mealplan.utilities.constants import DAYS, MEALS

logger = logging.getLogger(__name__)


def validate_slot(day: str, meal: str) -> None:
    if day not in DAYS or meal not in MEALS:
        raise InvalidSlotError(day, meal)


class WeeklyPlan:
    """Immutable-by-convention plan value.

    `meals` only holds assigned cells, so an empty plan is `{}`. Use
    `with_assignment` to derive a new plan; the receiver is never modified.
    """

    def __init__(self, meals: Optional[Dict[str, Dict[str, str]]] = None):
        self.meals: Dict[str, Dict[str, str]] = {}
        for day in DAYS:
            cells = (meals or {}).get(day) or {}
            kept = {meal: cells[meal] for meal in MEALS if cells.get(meal)}
            if kept:
                self.meals[day] = kept

    def get(self, day: str, meal: str) -> Optional[str]:
        return self.meals.get(day, {}).get(meal)

    def cells(self) -> Iterator[Tuple[str, str, Optional[str]]]:
        '''Yields every slot in calendar then meal order, assigned or not.'''
        for day in DAYS:
            for meal in MEALS:
                yield day, meal, self.get(day, meal)

    def with_assignment(self, day: str, meal: str, recipe_id: Optional[str]) -> "WeeklyPlan":
        validate_slot(day, meal)
        meals = {d: dict(m) for d, m in self.meals.items()}
        day_cells = meals.setdefault(day, {})
        if recipe_id:
            day_cells[meal] = recipe_id
        else:
            day_cells.pop(meal, None)
        return WeeklyPlan(meals)

    def is_empty(self) -> bool:
        return not self.meals

    def __eq__(self, other) -> bool:
        if not isinstance(other, WeeklyPlan):
            return NotImplemented
        return self.meals == other.meals

    def __str__(self) -> str:
        return f"WeeklyPlan({self.meals})"

    __repr__ = __str__

    @staticmethod
    def from_dict(data) -> "WeeklyPlan":
        '''Builds a plan from a stored document, dropping unrecognized days and meals.'''
        if not isinstance(data, dict):
            return WeeklyPlan()
        meals: Dict[str, Dict[str, str]] = {}
        for day, cells in data.items():
            if day not in DAYS or not isinstance(cells, dict):
                logger.debug("Ignoring unrecognized plan entry %r", day)
                continue
            for meal, recipe_id in cells.items():
                if meal not in MEALS:
                    logger.debug("Ignoring unrecognized meal %r on %s", meal, day)
                    continue
                if isinstance(recipe_id, str) and recipe_id:
                    meals.setdefault(day, {})[meal] = recipe_id
        return WeeklyPlan(meals)

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {day: dict(cells) for day, cells in self.meals.items()}
