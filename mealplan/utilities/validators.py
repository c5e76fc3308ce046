"""
Input validation schemas using Pydantic for the HTTP API.

Business rules (blank recipe names, unknown days or meals) are enforced by the
domain layer so that HTTP clients and in-process callers get the same errors;
these schemas only clean up what browsers send.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class RecipeInput(BaseModel):
    """Schema for a new recipe."""
    name: str = Field(..., max_length=200)
    ingredients: List[str] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return v.strip()

    @field_validator('ingredients', mode='before')
    @classmethod
    def split_ingredients(cls, v):
        """Accept a comma-separated string, drop blank entries."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(',')
        if not isinstance(v, list):
            return v
        return [i.strip() for i in v if isinstance(i, str) and i.strip()]


class PlanUpdateInput(BaseModel):
    """Schema for a single plan cell update. An empty recipe_id clears the cell."""
    day: str
    meal: str
    recipe_id: Optional[str] = None

    @field_validator('recipe_id')
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None


class LoginInput(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=200)

    @field_validator('display_name')
    @classmethod
    def strip_display_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Display name cannot be empty')
        return v
