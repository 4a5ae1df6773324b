"""Pydantic schemas for user directory records."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserRecord(BaseModel):
    """User as returned by the user directory."""

    id: str = Field(..., description="User ID")
    display_name: Optional[str] = Field(None, description="User display name")
    role: Optional[str] = Field(None, description="Free-text role label")
    pickup_opt_in: bool = Field(
        False,
        description="Whether the user opted into pickup-task broadcasts",
    )
    fcm_tokens: list[str] = Field(
        default_factory=list,
        description="Registered device push tokens (may hold duplicates or stale entries)",
    )

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("fcm_tokens", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or []
