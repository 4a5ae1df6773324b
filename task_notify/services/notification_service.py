"""Notification service for task lifecycle push notifications.

Provides the business flow for each task event:
- Locating the task (primary store or archive partitions)
- Resolving recipients and aggregating their device tokens
- Sending one multicast push and cleaning up stale tokens
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends

from ..config import settings
from ..schemas.events import TaskCreatedEvent, TaskEvent, TaskFinishedEvent
from ..schemas.notification import NotificationPayload, PlatformHints
from ..schemas.task import TaskRecord
from .dispatch_engine import DispatchResult, dispatch
from .ports import PushClient, TaskStore, UserDirectory
from .push_client import get_push_client
from .recipient_resolver import RecipientPolicy, RecipientSet, resolve_recipients
from .task_store import get_task_store
from .token_aggregator import TokenBatch, aggregate_tokens
from .token_reconciler import CleanupSummary, reconcile
from .user_directory import get_user_directory

logger = logging.getLogger(__name__)

DEFAULT_FINISHER_NAME = "storekeeper"
COMMENT_PREVIEW_LENGTH = 100


@dataclass
class NotifyOutcome:
    """Everything one event notification produced."""

    task: TaskRecord
    recipients: RecipientSet
    batch: TokenBatch
    result: Optional[DispatchResult] = None
    cleanup: Optional[CleanupSummary] = None
    dry_run: bool = False

    @property
    def sent(self) -> int:
        return self.result.success_count if self.result else 0

    @property
    def failed(self) -> int:
        return self.result.failure_count if self.result else 0

    @property
    def tokens_tried(self) -> int:
        return self.result.tokens_tried if self.result else 0


def build_task_created_payload(
    task: TaskRecord,
    pickup: bool,
    hints: Optional[PlatformHints] = None,
) -> NotificationPayload:
    """Notification for a newly created task."""
    title = "New pickup task" if pickup else "New task"
    body = task.title
    if task.comment:
        comment = task.comment.strip()
        if len(comment) > COMMENT_PREVIEW_LENGTH:
            comment = comment[:COMMENT_PREVIEW_LENGTH] + "..."
        if comment:
            body = f"{task.title}: {comment}"
    return NotificationPayload(
        title=title,
        body=body,
        data={
            "taskId": task.id,
            "event": TaskEvent.TASK_CREATED.value,
            "mode": "pickup" if pickup else "assigned",
        },
        hints=hints or PlatformHints(),
    )


def build_task_finished_payload(
    task: TaskRecord,
    hints: Optional[PlatformHints] = None,
) -> NotificationPayload:
    """Notification for a completed task, addressed to managers."""
    finisher = task.taken_by_name or next(
        (name for name in task.assignee_names if name), DEFAULT_FINISHER_NAME
    )
    return NotificationPayload(
        title="Task completed",
        body=f'"{task.title}" completed ({finisher})',
        data={
            "taskId": task.id,
            "event": TaskEvent.TASK_FINISHED.value,
        },
        hints=hints or PlatformHints(),
    )


class NotificationService:
    """
    Service running the notification pipeline for task events.

    Args:
        task_store: Task lookup (primary + archives)
        directory: User directory
        push_client: Multicast push provider
        policy: Pickup recipient policy
        hints: Platform delivery hints applied to every payload
    """

    def __init__(
        self,
        task_store: TaskStore,
        directory: UserDirectory,
        push_client: PushClient,
        policy: Optional[RecipientPolicy] = None,
        hints: Optional[PlatformHints] = None,
    ):
        self.task_store = task_store
        self.directory = directory
        self.push_client = push_client
        self.policy = policy or RecipientPolicy.from_settings()
        self.hints = hints or PlatformHints(
            priority="high",
            channel=settings.push_android_channel,
            click_target=settings.push_click_target,
        )

    async def notify_task_created(
        self,
        event: TaskCreatedEvent,
        dry_run: bool = False,
    ) -> NotifyOutcome:
        """
        Notify assignees (or pickup-eligible users) about a new task.

        Raises:
            TaskNotFoundError: If the task cannot be located
            DeliveryError: If the provider call fails
        """
        task = await self.task_store.get_task(event.task_id)
        author_id = task.created_by or event.author_id

        recipients = await resolve_recipients(
            TaskEvent.TASK_CREATED,
            task,
            self.directory,
            explicit_assignees=event.assignee_ids,
            policy=self.policy,
            author_id=author_id,
        )
        pickup = recipients.mode == "pickup"
        payload = build_task_created_payload(task, pickup=pickup, hints=self.hints)
        return await self._deliver(TaskEvent.TASK_CREATED, task, recipients, author_id, payload, dry_run)

    async def notify_task_finished(
        self,
        event: TaskFinishedEvent,
        dry_run: bool = False,
    ) -> NotifyOutcome:
        """
        Notify managers that a task was completed.

        Raises:
            TaskNotFoundError: If the task cannot be located
            DeliveryError: If the provider call fails
        """
        task = await self.task_store.get_task(event.task_id)
        author_id = task.created_by

        recipients = await resolve_recipients(
            TaskEvent.TASK_FINISHED,
            task,
            self.directory,
            policy=self.policy,
            author_id=author_id,
        )
        payload = build_task_finished_payload(task, hints=self.hints)
        return await self._deliver(TaskEvent.TASK_FINISHED, task, recipients, author_id, payload, dry_run)

    async def _deliver(
        self,
        event: TaskEvent,
        task: TaskRecord,
        recipients: RecipientSet,
        author_id: Optional[str],
        payload: NotificationPayload,
        dry_run: bool,
    ) -> NotifyOutcome:
        batch = await aggregate_tokens(recipients, author_id, self.directory)

        logger.info(
            f"[{event.value}] task={task.id} path={task.path} mode={recipients.mode} "
            f"recipients={len(recipients)} tokens={len(batch)}"
        )

        outcome = NotifyOutcome(task=task, recipients=recipients, batch=batch, dry_run=dry_run)
        if dry_run:
            return outcome

        outcome.result = await dispatch(batch, payload, self.push_client)
        if outcome.result.failure_count:
            outcome.cleanup = await reconcile(batch, outcome.result.outcomes, self.directory)
        return outcome


def get_notification_service(
    task_store: TaskStore = Depends(get_task_store),
    directory: UserDirectory = Depends(get_user_directory),
    push_client: PushClient = Depends(get_push_client),
) -> NotificationService:
    """FastAPI dependency assembling the request-scoped notification service."""
    return NotificationService(task_store, directory, push_client)
