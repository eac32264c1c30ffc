"""Todo router: CRUD endpoints for the caller's own tasks."""
import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from app.auth.dependencies import get_principal
from app.auth.service import Principal
from app.dependencies import Services, get_services

from .schemas import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/todos", tags=["todos"])


@router.get("")
async def list_todos(
    date: Optional[dt.date] = Query(None, description="Only todos for this day (YYYY-MM-DD)"),
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """List the caller's todos, ordered by creation time.

    Args:
        date: Optional day filter.

    Returns:
        JSON array of todo objects.
    """
    todos = services.todos.list_for_user(principal.user_id, date)
    return JSONResponse([t.model_dump(mode="json") for t in todos])


@router.post("", status_code=201)
async def create_todo(
    body: TodoCreate,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Create a new todo for the caller.

    Returns:
        The created todo object (201 Created).
    """
    todo = services.todos.create(principal.user_id, body.text, body.date)
    logger.info("[todos] Created %s for %s", todo.id, principal.user_id)
    return JSONResponse(todo.model_dump(mode="json"), status_code=201)


@router.put("/{todo_id}")
async def update_todo(
    todo_id: str,
    body: TodoUpdate,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Mark a todo completed or not completed.

    Returns:
        The updated todo, or 404 if the caller has no such todo.
    """
    updated = services.todos.set_completed(principal.user_id, todo_id, body.completed)
    if updated is None:
        raise HTTPException(status_code=404, detail="Todo not found")
    logger.info("[todos] Updated %s → completed=%s", todo_id, updated.completed)
    return JSONResponse(updated.model_dump(mode="json"))


@router.delete("/{todo_id}", status_code=204)
async def delete_todo(
    todo_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> Response:
    """Delete a todo.

    Returns:
        204 No Content on success, 404 if not found.
    """
    if not services.todos.delete(principal.user_id, todo_id):
        raise HTTPException(status_code=404, detail="Todo not found")
    logger.info("[todos] Deleted %s", todo_id)
    return Response(status_code=204)
