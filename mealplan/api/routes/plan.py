from fastapi import APIRouter, Depends

from mealplan.api.dependencies import get_catalog, get_plan_model
from mealplan.logic.catalog.recipe_catalog import RecipeCatalog
from mealplan.logic.planning.weekly_plan import WeeklyPlanModel
from mealplan.utilities.constants import DAYS, MEALS
from mealplan.utilities.validators import PlanUpdateInput

router = APIRouter(prefix="/api/plan", tags=["plan"])


def plan_payload(model: WeeklyPlanModel, catalog: RecipeCatalog) -> dict:
    """Plan document plus a display grid; dangling ids show up with a null name."""
    grid = {
        day: {
            meal: {
                "recipe_id": model.plan.get(day, meal),
                "recipe_name": catalog.name_of(model.plan.get(day, meal)),
            }
            for meal in MEALS
        }
        for day in DAYS
    }
    return {
        "days": list(DAYS),
        "meals": list(MEALS),
        "version": model.version,
        "plan": model.plan.to_dict(),
        "grid": grid,
    }


@router.get("")
def get_plan(model: WeeklyPlanModel = Depends(get_plan_model),
             catalog: RecipeCatalog = Depends(get_catalog)):
    return plan_payload(model, catalog)


@router.post("/assign")
async def assign_meal(payload: PlanUpdateInput,
                      model: WeeklyPlanModel = Depends(get_plan_model),
                      catalog: RecipeCatalog = Depends(get_catalog)):
    await model.assign(payload.day, payload.meal, payload.recipe_id)
    return plan_payload(model, catalog)
