from typing import Final

# Calendar order matters: aggregation walks the week in this order.
DAYS: Final[tuple[str, ...]] = (
    "Lunedì", "Martedì", "Mercoledì", "Giovedì", "Venerdì", "Sabato", "Domenica"
)
MEALS: Final[tuple[str, ...]] = ("pranzo", "cena")

RECIPES_KEY: Final[str] = "recipes"
PLAN_KEY: Final[str] = "mealPlans/sharedPlan"
SHOPPING_LIST_KEY: Final[str] = "shoppingLists/sharedList"
COLLECTION_KEYS: Final[frozenset[str]] = frozenset({RECIPES_KEY})

POLICY_LAST_WRITE_WINS: Final[str] = "last_write_wins"
POLICY_REJECT: Final[str] = "reject"
POLICY_REBASE: Final[str] = "rebase"
CONFLICT_POLICIES: Final[frozenset[str]] = frozenset(
    {POLICY_LAST_WRITE_WINS, POLICY_REJECT, POLICY_REBASE}
)
