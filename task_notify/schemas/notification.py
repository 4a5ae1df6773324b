"""Pydantic schemas for push notification payloads and dispatch responses."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlatformHints(BaseModel):
    """Delivery hints applied to the platform-specific message sections."""

    priority: str = Field("high", description="Delivery priority")
    channel: str = Field("tasks", description="Android notification channel id")
    click_target: str = Field(
        "OPEN_TASK",
        description="Click action / APNs category used by the client to open the task",
    )


class NotificationPayload(BaseModel):
    """Notification content sent to every token of a batch."""

    title: str = Field(..., min_length=1, max_length=255, description="Notification title")
    body: str = Field(..., description="Notification body")
    data: dict[str, str] = Field(
        default_factory=dict,
        description="Structured data block; always carries taskId",
    )
    hints: PlatformHints = Field(default_factory=PlatformHints)

    model_config = ConfigDict(frozen=True)

    @field_validator("data", mode="before")
    @classmethod
    def _stringify_data(cls, value):
        # FCM data values must be strings
        if not value:
            return {}
        return {str(k): str(v) for k, v in value.items() if v is not None}

    @field_validator("data")
    @classmethod
    def _task_id_present(cls, value: dict[str, str]) -> dict[str, str]:
        if not value.get("taskId"):
            raise ValueError("data block must contain taskId")
        return value


class DispatchResponse(BaseModel):
    """Response body for a completed (or no-op) dispatch."""

    ok: bool = True
    sent: int = Field(0, ge=0, description="Tokens the provider accepted")
    failed: int = Field(0, ge=0, description="Tokens the provider rejected")
    tokens_tried: int = Field(
        0,
        ge=0,
        alias="tokensTried",
        description="Size of the token batch",
    )
    info: Optional[str] = Field(None, description="Reason for a no-op dispatch")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class DebugResponse(BaseModel):
    """Dry-run response: resolution results without sending."""

    ok: bool = True
    mode: str = "debug"
    task_id: str = Field(..., alias="taskId")
    path: str
    title: str
    recipients_count: int = Field(..., alias="recipientsCount")
    tokens_count: int = Field(..., alias="tokensCount")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ErrorResponse(BaseModel):
    """Error body returned for every handled failure."""

    ok: bool = False
    error: str
    kind: Optional[str] = None
