from fastapi import APIRouter, Depends

from mealplan.api.dependencies import get_shopping_model
from mealplan.logic.shopping.list_model import ShoppingListModel

router = APIRouter(prefix="/api/shopping-list", tags=["shopping-list"])


def list_payload(model: ShoppingListModel) -> dict:
    items = model.get_items()
    return {"items": items, "count": len(items), "version": model.version}


@router.get("")
def get_shopping_list(model: ShoppingListModel = Depends(get_shopping_model)):
    return list_payload(model)


@router.post("/generate")
async def generate_shopping_list(model: ShoppingListModel = Depends(get_shopping_model)):
    await model.regenerate()
    return list_payload(model)


@router.post("/clear")
async def clear_shopping_list(model: ShoppingListModel = Depends(get_shopping_model)):
    await model.clear()
    return list_payload(model)
