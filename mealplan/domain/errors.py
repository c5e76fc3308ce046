"""Error taxonomy for the planner core.

ValidationError and its subclasses are raised before any gateway call is made.
GatewayUnavailableError and VersionConflictError come from the Sync Gateway and
are passed upward unchanged. StaleReferenceError never reaches callers of the
shopping list aggregator; it marks a plan cell whose recipe no longer exists.
"""


class PlannerError(Exception):
    """Base class for all planner errors."""


class ValidationError(PlannerError, ValueError):
    pass


class InvalidSlotError(ValidationError):
    def __init__(self, day, meal):
        super().__init__(f"Invalid day or meal: {day!r}/{meal!r}")
        self.day = day
        self.meal = meal


class NotSignedInError(PlannerError):
    pass


class GatewayUnavailableError(PlannerError):
    pass


class VersionConflictError(PlannerError):
    def __init__(self, resource_key: str, expected: int, actual: int):
        super().__init__(
            f"Version conflict on {resource_key}: expected {expected}, found {actual}"
        )
        self.resource_key = resource_key
        self.expected = expected
        self.actual = actual


class StaleReferenceError(PlannerError, LookupError):
    def __init__(self, recipe_id):
        super().__init__(f"Recipe {recipe_id!r} is not in the catalog")
        self.recipe_id = recipe_id
