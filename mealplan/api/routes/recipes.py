from fastapi import APIRouter, Depends, HTTPException, Query

from mealplan.api.dependencies import get_catalog, get_gateway, require_identity
from mealplan.domain.Recipe import Recipe
from mealplan.logic.catalog.recipe_catalog import RecipeCatalog
from mealplan.utilities.validators import RecipeInput

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


def recipe_payload(recipe: Recipe) -> dict:
    return {"id": recipe.id, **recipe.to_dict()}


@router.get("")
def list_recipes(q: str = Query(default="", description="Case-insensitive name filter"),
                 catalog: RecipeCatalog = Depends(get_catalog)):
    recipes = catalog.filter_by_name(q)
    return {
        "query": q,
        "count": len(recipes),
        "total": len(catalog),
        "recipes": [recipe_payload(r) for r in recipes],
    }


@router.post("", status_code=201)
async def add_recipe(payload: RecipeInput, gateway=Depends(get_gateway),
                     _identity=Depends(require_identity)):
    recipe_id = await RecipeCatalog(gateway).add_recipe(payload.name, payload.ingredients)
    return {"id": recipe_id, "name": payload.name, "ingredients": payload.ingredients}


@router.get("/{recipe_id}")
def recipe_detail(recipe_id: str, catalog: RecipeCatalog = Depends(get_catalog)):
    recipe = catalog.find_by_id(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe_payload(recipe)
