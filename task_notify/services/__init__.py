"""Business logic services."""

from .dispatch_engine import DispatchResult, dispatch
from .media_service import (
    MediaService,
    MediaServiceError,
    get_media_service,
    media_service,
)
from .notification_service import (
    NotificationService,
    NotifyOutcome,
    build_task_created_payload,
    build_task_finished_payload,
    get_notification_service,
)
from .ports import DeliveryOutcome, PushClient, TaskStore, UserDirectory
from .push_client import FirebasePushClient, get_push_client
from .recipient_resolver import RecipientPolicy, RecipientSet, resolve_recipients
from .role_classifier import CanonicalRole, normalize_role
from .task_store import SqlTaskStore, get_task_store
from .token_aggregator import TokenBatch, aggregate_tokens
from .token_reconciler import CleanupSummary, is_permanent_failure, reconcile
from .user_directory import SqlUserDirectory, get_user_directory

__all__ = [
    # Dispatch engine
    "DispatchResult",
    "dispatch",
    # Media service
    "MediaService",
    "MediaServiceError",
    "get_media_service",
    "media_service",
    # Notification service
    "NotificationService",
    "NotifyOutcome",
    "build_task_created_payload",
    "build_task_finished_payload",
    "get_notification_service",
    # Ports
    "DeliveryOutcome",
    "PushClient",
    "TaskStore",
    "UserDirectory",
    # Push client
    "FirebasePushClient",
    "get_push_client",
    # Recipient resolver
    "RecipientPolicy",
    "RecipientSet",
    "resolve_recipients",
    # Role classifier
    "CanonicalRole",
    "normalize_role",
    # Stores
    "SqlTaskStore",
    "get_task_store",
    "SqlUserDirectory",
    "get_user_directory",
    # Token aggregator
    "TokenBatch",
    "aggregate_tokens",
    # Token reconciler
    "CleanupSummary",
    "is_permanent_failure",
    "reconcile",
]
