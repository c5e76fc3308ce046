"""Core business logic layer.

Subpackages:
- catalog: the shared recipe collection
- planning: the shared weekly plan document
- shopping: shopping list aggregation and the persisted list

planner_client ties them to a signed-in session.
"""
__all__ = ["catalog", "planning", "shopping", "planner_client"]
