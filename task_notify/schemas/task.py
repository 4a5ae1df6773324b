"""Pydantic schemas for task records read by the dispatcher."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskRecord(BaseModel):
    """Read-only view of a task as seen by the notification pipeline."""

    id: str = Field(..., description="Task document id")
    title: str = Field(..., description="Task title")
    comment: Optional[str] = Field(None, description="Optional free-text comment")
    created_by: Optional[str] = Field(None, description="ID of the task author")
    assignee_ids: Optional[list[str]] = Field(
        None,
        description="Directed assignees; empty or missing for a pickup task",
    )
    assignee_names: list[str] = Field(
        default_factory=list,
        description="Display names of the assignees",
    )
    taken_by_name: Optional[str] = Field(
        None,
        description="Display name of the user who completed the task",
    )
    path: str = Field("", description="Store path the record was loaded from")

    model_config = ConfigDict(from_attributes=True, frozen=True)
