from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Todo, TodoStatus
from ..repositories import get_repository
from ..schemas import TimestampQuery, TodoCreate, TodoOut, TodoUpdate
from ..services import ParentNotFoundError, TodoNotFoundError, TodoService
from ..settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)


def _get_service(session: Session = Depends(get_db)) -> TodoService:
    """
    Dependency building the service on top of the request's session.
    """
    return TodoService(get_repository(session), get_settings().filter_strategy)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description=(
        "List top-level todos with their subtasks nested.\n\n"
        "Query parameters (all optional):\n"
        "- status: TODO, IN_PROGRESS or DONE, matched on the top-level todo\n"
        "- dueBefore: ISO date or datetime; only todos due strictly before it\n"
        "- text: case-insensitive substring of the description; a todo also "
        "matches when one of its subtasks contains the text"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        422: {"description": "Invalid status or dueBefore value"},
    },
)
def list_todos(
    status_filter: Optional[TodoStatus] = Query(None, alias="status", description="Filter by status"),
    due_before: TimestampQuery = Query(None, alias="dueBefore", description="Only todos due before this time"),
    text: Optional[str] = Query(None, description="Search text for the description"),
    service: TodoService = Depends(_get_service),
) -> List[TodoOut]:
    """
    List top-level todos matching the optional filters.
    """
    todos = service.get_all_todos_with_filters(status_filter, due_before, text)
    return [TodoOut.model_validate(t) for t in todos]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo by ID, with its subtasks.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found (empty body)"},
    },
)
def get_todo(todo_id: int, service: TodoService = Depends(_get_service)):
    """
    Retrieve a single Todo by its ID.
    """
    todo = service.get_todo_by_id(todo_id)
    if todo is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return TodoOut.model_validate(todo)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    summary="Create Todo",
    description=(
        "Create a new Todo. Pass parentId to create it as a subtask of an "
        "existing todo."
    ),
    responses={
        200: {"description": "Todo created"},
        404: {"description": "Parent todo not found"},
    },
)
def create_todo(
    payload: TodoCreate,
    parent_id: Optional[int] = Query(None, alias="parentId", description="ID of the parent todo"),
    service: TodoService = Depends(_get_service),
) -> TodoOut:
    """
    Create a new Todo, attaching it to its parent when one is given.
    """
    todo = Todo(
        description=payload.description,
        due_date=payload.due_date,
        status=payload.resolved_status(),
    )
    if payload.created_at is not None:
        todo.created_at = payload.created_at

    if parent_id is not None:
        parent = service.get_todo_by_id(parent_id)
        if parent is None:
            logger.warning("Rejected new todo: parent %s does not exist", parent_id)
            raise ParentNotFoundError(parent_id)
        todo.parent = parent

    created = service.create_todo(todo)
    return TodoOut.model_validate(created)


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Replace description, due date and status of a Todo. The id, creation "
        "time, parent and subtasks are kept."
    ),
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found (empty body)"},
    },
)
def update_todo(todo_id: int, payload: TodoUpdate, service: TodoService = Depends(_get_service)):
    """
    Update an existing Todo.
    """
    try:
        updated = service.update_todo(todo_id, payload)
    except TodoNotFoundError:
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return TodoOut.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo and its subtasks. Succeeds whether or not the ID exists.",
    responses={
        204: {"description": "Todo deleted (or did not exist)"},
    },
)
def delete_todo(todo_id: int, service: TodoService = Depends(_get_service)) -> Response:
    """
    Delete a Todo. Always returns 204.
    """
    service.delete_todo(todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
