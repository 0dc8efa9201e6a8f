"""
Business rules for todos: list filtering, update merging and parent handling.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from .models import Todo, TodoStatus
from .repositories import TodoRepository
from .schemas import TodoUpdate

logger = logging.getLogger(__name__)


class TodoNotFoundError(LookupError):
    """Raised when a todo id does not exist."""

    def __init__(self, todo_id: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"Todo {todo_id} not found")
        self.todo_id = todo_id


class ParentNotFoundError(TodoNotFoundError):
    """Raised when the parent requested for a new todo does not exist."""

    def __init__(self, todo_id: int) -> None:
        super().__init__(todo_id, f"Parent todo {todo_id} not found")


def _contains_text(todo: Todo, text: str) -> bool:
    return text.lower() in (todo.description or "").lower()


def _matches_status_and_due(
    todo: Todo, status: Optional[TodoStatus], due_before: Optional[datetime]
) -> bool:
    if status is not None and todo.status != status:
        return False
    if due_before is not None and (todo.due_date is None or not todo.due_date < due_before):
        return False
    return True


# PUBLIC_INTERFACE
def matches_filters(
    todo: Todo,
    status: Optional[TodoStatus] = None,
    due_before: Optional[datetime] = None,
    text: Optional[str] = None,
) -> bool:
    """
    Decide whether a top-level todo belongs in a filtered list.

    The todo matches when it satisfies every given filter itself. Failing
    that, a subtask may stand in for the text filter only: the todo is still
    included if one of its subtasks contains the text, provided the todo's
    own status and due date pass. With no text filter, any subtask at all
    opens that second path, which then reduces to the status/due checks.
    """
    main_matches = _matches_status_and_due(todo, status, due_before) and (
        not text or _contains_text(todo, text)
    )
    if main_matches:
        return True

    if not todo.subtasks:
        return False

    if text:
        has_matching_subtask = any(_contains_text(sub, text) for sub in todo.subtasks)
    else:
        has_matching_subtask = True

    if has_matching_subtask:
        # text was satisfied by a subtask; the parent must still pass the rest
        return _matches_status_and_due(todo, status, due_before)
    return False


# PUBLIC_INTERFACE
class TodoService:
    """
    Service layer between the HTTP routes and the repository.

    filter_strategy selects where list filters run: 'database' delegates to
    the repository query, 'application' loads every top-level todo and applies
    matches_filters in memory. Both return the same todos.
    """

    def __init__(self, repository: TodoRepository, filter_strategy: str = "database") -> None:
        self._repo = repository
        self._filter_strategy = filter_strategy

    def get_all_todos(self) -> List[Todo]:
        return self._repo.find_all()

    def get_all_todos_with_subtasks(self) -> List[Todo]:
        return self._repo.find_all_with_subtasks()

    def get_all_todos_with_filters(
        self,
        status: Optional[TodoStatus] = None,
        due_before: Optional[datetime] = None,
        text: Optional[str] = None,
    ) -> List[Todo]:
        """Return top-level todos accepted by the filters; subtasks stay nested."""
        text = text or None
        if self._filter_strategy == "application":
            return [
                todo
                for todo in self._repo.find_top_level_todos()
                if matches_filters(todo, status, due_before, text)
            ]
        return self._repo.find_top_level_todos_with_filters(status, due_before, text)

    def get_todo_by_id(self, todo_id: int) -> Optional[Todo]:
        return self._repo.find_by_id(todo_id)

    def create_todo(self, todo: Todo) -> Todo:
        """Persist a new todo. Any parent must already be attached."""
        created = self._repo.save(todo)
        logger.info("Created todo %s (parent=%s)", created.id, created.parent_id)
        return created

    def update_todo(self, todo_id: int, data: TodoUpdate) -> Todo:
        """
        Overwrite description, due date and status of an existing todo.

        Raises:
            TodoNotFoundError if the id does not exist.
        """
        todo = self._repo.find_by_id(todo_id)
        if todo is None:
            raise TodoNotFoundError(todo_id)

        todo.description = data.description
        todo.due_date = data.due_date
        todo.status = data.resolved_status()
        updated = self._repo.save(todo)
        logger.info("Updated todo %s (status=%s)", updated.id, updated.status.value)
        return updated

    def delete_todo(self, todo_id: int) -> None:
        self._repo.delete_by_id(todo_id)
        logger.info("Deleted todo %s", todo_id)
