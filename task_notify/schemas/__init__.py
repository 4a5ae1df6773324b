"""Pydantic schemas package."""

from .events import (
    TaskCreatedEvent,
    TaskEvent,
    TaskEventBase,
    TaskFinishedEvent,
    split_identifiers,
)
from .media import MediaDeleteRequest, MediaDeleteResponse
from .notification import (
    DebugResponse,
    DispatchResponse,
    ErrorResponse,
    NotificationPayload,
    PlatformHints,
)
from .task import TaskRecord
from .user import UserRecord

__all__ = [
    # Events
    "TaskCreatedEvent",
    "TaskEvent",
    "TaskEventBase",
    "TaskFinishedEvent",
    "split_identifiers",
    # Media
    "MediaDeleteRequest",
    "MediaDeleteResponse",
    # Notification
    "DebugResponse",
    "DispatchResponse",
    "ErrorResponse",
    "NotificationPayload",
    "PlatformHints",
    # Records
    "TaskRecord",
    "UserRecord",
]
