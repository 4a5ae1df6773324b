"""Pydantic schemas for inbound task lifecycle events."""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TaskEvent(str, Enum):
    """Task lifecycle event enumeration."""

    TASK_CREATED = "task_created"
    TASK_FINISHED = "task_finished"


def split_identifiers(value: Any) -> list[str]:
    """
    Normalize an identifier list that may arrive as "a, b" or ["a", "b"].

    Entries are stringified and trimmed; blanks are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = [str(v) for v in value if v is not None]
    else:
        items = [str(value)]
    return [item.strip() for item in items if item.strip()]


class TaskEventBase(BaseModel):
    """Base schema with the task identifier shared by all events."""

    task_id: str = Field(
        ...,
        validation_alias=AliasChoices("taskId", "taskid", "taskID", "task_id"),
        description="Task document id or full document path",
        examples=["0Yq3mYxYk6ZQ", "archives/2024-05-01/tasks/0Yq3mYxYk6ZQ"],
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("task_id", mode="before")
    @classmethod
    def _task_id_required(cls, value):
        if value is None:
            raise ValueError("Missing taskId")
        text = str(value).strip()
        if not text:
            raise ValueError("Missing taskId")
        return text


class TaskCreatedEvent(TaskEventBase):
    """A task was created, optionally with directed assignees."""

    assignee_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("assigneeIds", "assignees", "assignee_ids"),
        description="Assignee ids as a list or a comma-joined string",
        examples=[["u1", "u2"], "u1,u2"],
    )
    author_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("authorId", "createdBy", "author_id"),
        description="Author id; used only when the task record has none",
    )

    @field_validator("assignee_ids", mode="before")
    @classmethod
    def _normalize_assignees(cls, value):
        return split_identifiers(value)


class TaskFinishedEvent(TaskEventBase):
    """A task was completed."""

    pass
