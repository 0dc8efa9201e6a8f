"""
Todo ORM model - tasks with optional subtasks
"""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from .db import Base


# PUBLIC_INTERFACE
class TodoStatus(str, enum.Enum):
    """Lifecycle state of a todo. Any value may follow any other."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


# PUBLIC_INTERFACE
class Todo(Base):
    """
    A todo item. A todo without a parent is a top-level item; its subtasks are
    todos whose parent_id points back to it.

    The parent owns its subtasks: deleting a parent deletes them too. The
    subtask-to-parent link is only used for the relational join and is never
    serialized.
    """

    __tablename__ = "todos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    due_date = Column(DateTime, nullable=True)
    status = Column(
        Enum(TodoStatus, name="todo_status", native_enum=False, length=20),
        nullable=False,
        default=TodoStatus.TODO,
    )
    parent_id = Column(
        Integer,
        ForeignKey("todos.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    parent = relationship("Todo", back_populates="subtasks", remote_side=[id])
    subtasks = relationship(
        "Todo",
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="Todo.id",
    )

    @property
    def done(self) -> bool:
        """Legacy completion flag derived from status."""
        return self.status == TodoStatus.DONE

    @done.setter
    def done(self, value: bool) -> None:
        self.status = TodoStatus.DONE if value else TodoStatus.TODO

    def __repr__(self) -> str:
        return f"<Todo id={self.id} status={self.status} parent_id={self.parent_id}>"
