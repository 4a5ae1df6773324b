"""Recipient resolution for task lifecycle events.

Policies, evaluated in order:
- task finished: every Manager, regardless of assignment
- task created with assignees: exactly the assignees
- task created without assignees (pickup): opted-in users whose role is one
  of the pickup roles (Storekeeper and, unless disabled, Head)

The task author is removed from every result.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..config import settings
from ..schemas.events import TaskEvent
from ..schemas.task import TaskRecord
from ..schemas.user import UserRecord
from ..utils.ordered_set import OrderedSet
from .ports import UserDirectory
from .role_classifier import CanonicalRole, normalize_role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipientPolicy:
    """Roles eligible for pickup broadcasts."""

    pickup_roles: frozenset = frozenset({CanonicalRole.STOREKEEPER, CanonicalRole.HEAD})

    @classmethod
    def from_settings(cls, include_head: Optional[bool] = None) -> "RecipientPolicy":
        if include_head is None:
            include_head = settings.pickup_include_head
        roles = {CanonicalRole.STOREKEEPER}
        if include_head:
            roles.add(CanonicalRole.HEAD)
        return cls(pickup_roles=frozenset(roles))


@dataclass
class RecipientSet:
    """
    Ordered user ids targeted by one dispatch.

    ``records`` holds users already loaded during resolution so the token
    aggregator can skip fetching them again.
    """

    user_ids: OrderedSet = field(default_factory=OrderedSet)
    records: dict[str, UserRecord] = field(default_factory=dict)
    mode: str = "assigned"

    def __len__(self) -> int:
        return len(self.user_ids)

    def __iter__(self):
        return iter(self.user_ids)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self.user_ids


async def resolve_recipients(
    event: TaskEvent,
    task: TaskRecord,
    directory: UserDirectory,
    explicit_assignees: Optional[Sequence[str]] = None,
    policy: Optional[RecipientPolicy] = None,
    author_id: Optional[str] = None,
) -> RecipientSet:
    """
    Compute the recipients of a task event.

    Args:
        event: Lifecycle event being notified
        task: The task record
        directory: User directory
        explicit_assignees: Assignee ids supplied with the event payload
        policy: Pickup role policy (defaults to settings)
        author_id: Author to exclude; defaults to the task's creator

    Returns:
        RecipientSet: Target users, never containing the author
    """
    policy = policy or RecipientPolicy.from_settings()
    author = author_id if author_id is not None else task.created_by

    if event == TaskEvent.TASK_FINISHED:
        users = await directory.users_where()
        recipients = _from_records(
            (u for u in users if normalize_role(u.role) == CanonicalRole.MANAGER),
            mode="managers",
        )
    else:
        assignees = [a for a in (explicit_assignees or []) if a]
        if not assignees:
            assignees = [a for a in (task.assignee_ids or []) if a]

        if assignees:
            recipients = RecipientSet(user_ids=OrderedSet(assignees), mode="assigned")
        else:
            users = await directory.users_where(pickup_opt_in=True)
            recipients = _from_records(
                (u for u in users if normalize_role(u.role) in policy.pickup_roles),
                mode="pickup",
            )

    if author and recipients.user_ids.discard(author):
        recipients.records.pop(author, None)
        logger.debug(f"Excluded author {author} from recipients of task {task.id}")

    return recipients


def _from_records(users, mode: str) -> RecipientSet:
    recipients = RecipientSet(mode=mode)
    for user in users:
        if recipients.user_ids.add(user.id):
            recipients.records[user.id] = user
    return recipients
