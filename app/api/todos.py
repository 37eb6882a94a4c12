from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user, get_todo_store
from app.stores.todos import TodoStore
from models import Priority, RequestContext, Status, TodoCreate, TodoFilters, TodoUpdate

router = APIRouter()


def todo_filters(
    status: Optional[Status] = None,
    priority: Optional[Priority] = None,
    category: Optional[str] = None,
    due_date_start: Optional[datetime] = None,
    due_date_end: Optional[datetime] = None,
    search: Optional[str] = None,
) -> TodoFilters:
    return TodoFilters(
        status=status,
        priority=priority,
        category=category,
        due_date_start=due_date_start,
        due_date_end=due_date_end,
        search=search,
    )


@router.get("")
async def list_todos(
    filters: TodoFilters = Depends(todo_filters),
    ctx: RequestContext = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store),
):
    return {"todos": await todos.list(ctx.user_id, filters)}


@router.post("", status_code=201)
async def create_todo(
    payload: TodoCreate,
    ctx: RequestContext = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store),
):
    return {"todo": await todos.create(ctx.user_id, payload)}


# Declared before "/{todo_id}" so "overdue" is not taken for an id.
@router.get("/overdue")
async def list_overdue_todos(
    ctx: RequestContext = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store),
):
    return {"todos": await todos.list_overdue(ctx.user_id)}


@router.get("/{todo_id}")
async def get_todo(
    todo_id: str,
    ctx: RequestContext = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store),
):
    return {"todo": await todos.get_by_id(ctx.user_id, todo_id)}


@router.put("/{todo_id}")
async def update_todo(
    todo_id: str,
    payload: TodoUpdate,
    ctx: RequestContext = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store),
):
    return {"todo": await todos.update(ctx.user_id, todo_id, payload)}


@router.delete("/{todo_id}")
async def delete_todo(
    todo_id: str,
    ctx: RequestContext = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store),
):
    await todos.delete(ctx.user_id, todo_id)
    return {"message": "Todo deleted successfully"}


@router.patch("/{todo_id}/toggle")
async def toggle_todo(
    todo_id: str,
    ctx: RequestContext = Depends(get_current_user),
    todos: TodoStore = Depends(get_todo_store),
):
    return {"todo": await todos.toggle_status(ctx.user_id, todo_id)}
