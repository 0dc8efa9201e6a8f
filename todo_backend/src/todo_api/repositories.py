from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased, selectinload

from .models import Todo, TodoStatus

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class TodoRepository(ABC):
    """Abstract repository contract for todo storage."""

    @abstractmethod
    def find_by_id(self, todo_id: int) -> Optional[Todo]:
        """Return a Todo by id, or None if not found."""

    @abstractmethod
    def find_all(self) -> List[Todo]:
        """Return every Todo, top-level and subtasks alike."""

    @abstractmethod
    def find_all_with_subtasks(self) -> List[Todo]:
        """Return every Todo with its subtasks already loaded."""

    @abstractmethod
    def find_top_level_todos(self) -> List[Todo]:
        """Return todos without a parent, with their subtasks already loaded."""

    @abstractmethod
    def find_top_level_todos_with_filters(
        self,
        status: Optional[TodoStatus] = None,
        due_before: Optional[datetime] = None,
        text: Optional[str] = None,
    ) -> List[Todo]:
        """
        Return top-level todos accepted by the list filters.

        A todo is accepted when status and due_before hold on the todo itself
        and the text is found either in its own description or in the
        description of one of its subtasks. Absent filters always hold.
        """

    @abstractmethod
    def save(self, todo: Todo) -> Todo:
        """Insert or update a Todo (and its subtasks) and return it."""

    @abstractmethod
    def delete_by_id(self, todo_id: int) -> None:
        """Delete a Todo and its subtasks. Unknown ids are ignored."""


class SQLAlchemyTodoRepository(TodoRepository):
    """
    Repository backed by a SQLAlchemy session. Each write commits on its own.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_id(self, todo_id: int) -> Optional[Todo]:
        return self._session.get(Todo, todo_id)

    def find_all(self) -> List[Todo]:
        return list(self._session.scalars(select(Todo).order_by(Todo.id)))

    def find_all_with_subtasks(self) -> List[Todo]:
        stmt = select(Todo).options(selectinload(Todo.subtasks)).order_by(Todo.id)
        return list(self._session.scalars(stmt))

    def find_top_level_todos(self) -> List[Todo]:
        stmt = (
            select(Todo)
            .where(Todo.parent_id.is_(None))
            .options(selectinload(Todo.subtasks))
            .order_by(Todo.id)
        )
        return list(self._session.scalars(stmt))

    def find_top_level_todos_with_filters(
        self,
        status: Optional[TodoStatus] = None,
        due_before: Optional[datetime] = None,
        text: Optional[str] = None,
    ) -> List[Todo]:
        stmt = (
            select(Todo)
            .where(Todo.parent_id.is_(None))
            .options(selectinload(Todo.subtasks))
            .order_by(Todo.id)
        )

        if status is not None:
            stmt = stmt.where(Todo.status == status)

        if due_before is not None:
            stmt = stmt.where(Todo.due_date.is_not(None), Todo.due_date < due_before)

        if text:
            needle = text.lower()
            own_text = func.lower(Todo.description).contains(needle, autoescape=True)
            subtask = aliased(Todo)
            subtask_text = (
                select(subtask.id)
                .where(
                    subtask.parent_id == Todo.id,
                    func.lower(subtask.description).contains(needle, autoescape=True),
                )
                .exists()
            )
            stmt = stmt.where(own_text | subtask_text)

        logger.debug(
            "Filtering top-level todos status=%s due_before=%s text=%r", status, due_before, text
        )
        return list(self._session.scalars(stmt))

    def save(self, todo: Todo) -> Todo:
        self._session.add(todo)
        self._session.commit()
        self._session.refresh(todo)
        return todo

    def delete_by_id(self, todo_id: int) -> None:
        todo = self._session.get(Todo, todo_id)
        if todo is None:
            return
        self._session.delete(todo)
        self._session.commit()


# PUBLIC_INTERFACE
def get_repository(session: Session) -> TodoRepository:
    """Return the repository bound to the given session."""
    return SQLAlchemyTodoRepository(session)
