"""Pydantic schemas for task media cleanup."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .events import split_identifiers


class MediaDeleteRequest(BaseModel):
    """Delete explicit objects, or everything stored under a task."""

    public_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("publicIds", "public_ids"),
        description="Object keys as a list or a comma-joined string",
    )
    task_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("taskId", "taskid", "taskID", "task_id"),
        description="Delete every object under tasks/<taskId>/",
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("public_ids", mode="before")
    @classmethod
    def _normalize_ids(cls, value):
        return split_identifiers(value)

    @field_validator("task_id", mode="before")
    @classmethod
    def _blank_task_id(cls, value):
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class MediaDeleteResponse(BaseModel):
    """Result of a media cleanup request."""

    deleted: int = 0
    mode: str = Field(..., description="noop, byPublicIds or byTaskPrefix")
    prefix: Optional[str] = None
