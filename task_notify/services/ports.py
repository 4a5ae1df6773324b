"""
Collaborator interfaces used by the notification pipeline.

The pipeline depends on these Protocols instead of concrete adapters, so the
SQL stores and the Firebase client can be swapped for in-memory fakes in tests.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from ..schemas.notification import NotificationPayload
from ..schemas.task import TaskRecord
from ..schemas.user import UserRecord


@dataclass(frozen=True)
class DeliveryOutcome:
    """Per-token result reported by the push provider."""

    token: str
    success: bool
    message_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None


class TaskStore(Protocol):
    """Document store of tasks, including dated archive partitions."""

    async def get_task(self, task_id: str) -> TaskRecord:
        """Return the task or raise TaskNotFoundError."""
        ...


class UserDirectory(Protocol):
    """Document store of users keyed by user id."""

    async def get_user(self, user_id: str) -> Optional[UserRecord]: ...

    async def users_where(self, **equals: Any) -> list[UserRecord]:
        """Users whose fields equal every given value; all users when empty."""
        ...

    async def remove_tokens(self, user_id: str, tokens: Sequence[str]) -> int:
        """Remove tokens from the user's token set; return how many were removed."""
        ...


class PushClient(Protocol):
    """Multicast push delivery provider."""

    async def send_multicast(
        self,
        tokens: Sequence[str],
        payload: NotificationPayload,
    ) -> list[DeliveryOutcome]:
        """Send one message to every token; outcomes are in token order."""
        ...
