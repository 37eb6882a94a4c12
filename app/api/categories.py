from fastapi import APIRouter, Depends

from app.dependencies import get_category_store, get_current_user
from app.stores.categories import CategoryStore
from models import CategoryCreate, CategoryUpdate, RequestContext

router = APIRouter()


@router.get("")
async def list_categories(
    ctx: RequestContext = Depends(get_current_user),
    categories: CategoryStore = Depends(get_category_store),
):
    return {"categories": await categories.list(ctx.user_id)}


@router.post("", status_code=201)
async def create_category(
    payload: CategoryCreate,
    ctx: RequestContext = Depends(get_current_user),
    categories: CategoryStore = Depends(get_category_store),
):
    category = await categories.create(ctx.user_id, payload.name, payload.color)
    return {"category": category}


@router.get("/{category_id}")
async def get_category(
    category_id: str,
    ctx: RequestContext = Depends(get_current_user),
    categories: CategoryStore = Depends(get_category_store),
):
    return {"category": await categories.get_by_id(ctx.user_id, category_id)}


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    ctx: RequestContext = Depends(get_current_user),
    categories: CategoryStore = Depends(get_category_store),
):
    patch = payload.model_dump(exclude_unset=True)
    return {"category": await categories.update(ctx.user_id, category_id, patch)}


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    ctx: RequestContext = Depends(get_current_user),
    categories: CategoryStore = Depends(get_category_store),
):
    await categories.delete(ctx.user_id, category_id)
    return {"message": "Category deleted successfully"}
