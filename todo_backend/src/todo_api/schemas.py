from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import TodoStatus

# Timestamps may arrive as a date, datetime, or ISO8601 string
TimestampInput = Union[date, datetime, str]


def _naive(value: datetime) -> datetime:
    # Stored timestamps are naive local time; aware inputs are converted first
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


# PUBLIC_INTERFACE
def parse_timestamp(value: Optional[TimestampInput]) -> Optional[datetime]:
    """
    Normalize timestamp input into a naive datetime.
    - Strings are parsed as ISO datetimes; date-only strings become midnight.
    - Dates (not datetimes) become midnight.
    - Timezone-aware datetimes are converted to naive local time.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _naive(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        try:
            return _naive(datetime.fromisoformat(s.replace("Z", "+00:00")))
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid timestamp format. Use ISO8601 date or datetime string "
                    "(e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for timestamp; expected date, datetime, or ISO8601 string.")


# Query parameter type: invalid values surface as request validation errors
TimestampQuery = Annotated[Optional[datetime], BeforeValidator(parse_timestamp)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _TodoFields(_CamelModel):
    """Fields a client may set on create and replace."""

    description: str = Field(..., description="What needs to be done")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Due date/time. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )
    status: Optional[TodoStatus] = Field(default=None, description="TODO, IN_PROGRESS or DONE")
    done: Optional[bool] = Field(
        default=None,
        description="Legacy completion flag, used only when status is not given",
    )

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("description must not be blank")
        return s

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[TimestampInput]) -> Optional[datetime]:
        return parse_timestamp(v)

    def resolved_status(self) -> TodoStatus:
        """
        Status to store for this payload: an explicit status wins, then the
        legacy done flag, then TODO.
        """
        if self.status is not None:
            return self.status
        if self.done is not None:
            return TodoStatus.DONE if self.done else TodoStatus.TODO
        return TodoStatus.TODO


# PUBLIC_INTERFACE
class TodoCreate(_TodoFields):
    """
    Schema for creating a new Todo. The parent is given separately via the
    parentId query parameter.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "description": "Write quarterly report",
                "dueDate": "2025-01-10T17:00:00",
                "status": "IN_PROGRESS",
            }
        }
    )

    created_at: Optional[datetime] = Field(
        default=None, description="Creation timestamp; set by the server when omitted"
    )

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_created_at(cls, v: Optional[TimestampInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class TodoUpdate(_TodoFields):
    """
    Replacement values for an existing Todo. Only description, due date and
    status are taken; id, creation time, parent and subtasks never change.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "description": "Write and send quarterly report",
                "dueDate": "2025-01-12",
                "status": "DONE",
            }
        }
    )


# PUBLIC_INTERFACE
class TodoOut(_CamelModel):
    """
    Schema returned by the API for a Todo. Subtasks are nested; the parent
    back-reference is never included.
    """

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "description": "Write quarterly report",
                "createdAt": "2025-01-02T09:15:30.123456",
                "dueDate": "2025-01-10T17:00:00",
                "status": "IN_PROGRESS",
                "done": False,
                "subtasks": [
                    {
                        "id": 2,
                        "description": "Collect numbers",
                        "createdAt": "2025-01-02T09:16:00",
                        "dueDate": None,
                        "status": "TODO",
                        "done": False,
                        "subtasks": [],
                    }
                ],
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the todo")
    description: str = Field(..., description="What needs to be done")
    created_at: datetime = Field(..., description="Creation timestamp")
    due_date: Optional[datetime] = Field(default=None, description="Due date/time as ISO8601 datetime")
    status: TodoStatus = Field(..., description="Current status")
    done: bool = Field(..., description="True when status is DONE")
    subtasks: List[TodoOut] = Field(default_factory=list, description="Nested subtasks")


TodoOut.model_rebuild()
