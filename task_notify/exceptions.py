"""Error types raised by the notification pipeline.

Each error carries the HTTP status it maps to; the handler registered in
``main.py`` renders them as ``{"ok": false, "error": ..., "kind": ...}``.
"""

from typing import Optional


class NotifyError(Exception):
    """Base exception for task notification errors."""

    status_code: int = 500
    kind: str = "internal"

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class BadRequestError(NotifyError):
    """Missing or malformed event payload."""

    status_code = 400
    kind = "bad_request"


class TaskNotFoundError(NotifyError):
    """Task is absent from the primary store and every searched archive."""

    status_code = 404
    kind = "not_found"

    def __init__(self, task_id: str):
        super().__init__("task not found")
        self.task_id = task_id


class ConfigurationMissingError(NotifyError):
    """Required credentials are not configured."""

    status_code = 500
    kind = "configuration_missing"


class DeliveryError(NotifyError):
    """The push provider call itself failed."""

    status_code = 502
    kind = "delivery"
