"""Firebase Cloud Messaging push client.

The Firebase app handle is built once at startup from the service account in
settings and injected into request handlers; nothing here is initialized
lazily at import time.
"""

import asyncio
import json
import logging
from typing import Optional, Sequence

import firebase_admin
from fastapi import Request
from firebase_admin import credentials, exceptions, messaging

from ..config import Settings
from ..exceptions import ConfigurationMissingError
from ..schemas.notification import NotificationPayload
from .ports import DeliveryOutcome, PushClient

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "task-notify"


def failure_reason(exc: Optional[BaseException]) -> str:
    """
    Map a Firebase send exception to a short reason code.

    Codes for invalid registrations are the ones the stale token reconciler
    treats as permanent; everything else is passed through from the SDK code.
    """
    if exc is None:
        return "unknown"
    if isinstance(exc, messaging.UnregisteredError):
        return "unregistered"
    if isinstance(exc, messaging.SenderIdMismatchError):
        return "sender-id-mismatch"
    if isinstance(exc, messaging.QuotaExceededError):
        return "quota-exceeded"
    if isinstance(exc, exceptions.InvalidArgumentError) and "registration token" in str(exc).lower():
        return "invalid-registration-token"
    code = getattr(exc, "code", None)
    if code:
        return str(code).lower().replace("_", "-")
    return type(exc).__name__


def build_multicast_message(
    tokens: Sequence[str],
    payload: NotificationPayload,
) -> messaging.MulticastMessage:
    """Build the FCM multicast message for a payload."""
    hints = payload.hints
    return messaging.MulticastMessage(
        tokens=list(tokens),
        notification=messaging.Notification(title=payload.title, body=payload.body),
        data=dict(payload.data),
        android=messaging.AndroidConfig(
            priority=hints.priority,
            notification=messaging.AndroidNotification(
                channel_id=hints.channel,
                click_action=hints.click_target,
            ),
        ),
        apns=messaging.APNSConfig(
            headers={"apns-priority": "10" if hints.priority == "high" else "5"},
            payload=messaging.APNSPayload(
                aps=messaging.Aps(sound="default", category=hints.click_target)
            ),
        ),
    )


class FirebasePushClient:
    """
    Push client sending multicast messages through firebase-admin.

    Args:
        app: Initialized firebase_admin App
    """

    def __init__(self, app: firebase_admin.App):
        self._app = app

    @classmethod
    def from_settings(cls, config: Settings) -> "FirebasePushClient":
        """
        Initialize a Firebase app from the service account in settings.

        Raises:
            ConfigurationMissingError: If credentials are absent or unreadable
        """
        if not config.push_configured:
            raise ConfigurationMissingError("Missing FIREBASE_SERVICE_ACCOUNT")

        try:
            account = json.loads(config.firebase_service_account)
        except json.JSONDecodeError as e:
            raise ConfigurationMissingError(f"FIREBASE_SERVICE_ACCOUNT is not valid JSON: {e}")

        # Env-stored keys usually carry literal "\n" sequences
        if isinstance(account.get("private_key"), str):
            account["private_key"] = account["private_key"].replace("\\n", "\n").strip()

        project_id = config.firebase_project_id or account.get("project_id")
        try:
            credential = credentials.Certificate(account)
            app = firebase_admin.initialize_app(
                credential,
                {"projectId": project_id} if project_id else None,
                name=FIREBASE_APP_NAME,
            )
        except ValueError as e:
            raise ConfigurationMissingError(f"Invalid Firebase credentials: {e}")

        logger.info(f"Firebase app initialized for project {project_id}")
        return cls(app)

    async def send_multicast(
        self,
        tokens: Sequence[str],
        payload: NotificationPayload,
    ) -> list[DeliveryOutcome]:
        """
        Send one message to every token.

        The SDK call is blocking and runs in a worker thread. SDK errors
        that affect the whole call propagate to the caller.

        Returns:
            list[DeliveryOutcome]: One outcome per token, in token order
        """
        message = build_multicast_message(tokens, payload)
        batch = await asyncio.to_thread(
            messaging.send_each_for_multicast, message, app=self._app
        )

        outcomes = []
        for token, response in zip(tokens, batch.responses):
            if response.success:
                outcomes.append(
                    DeliveryOutcome(token=token, success=True, message_id=response.message_id)
                )
            else:
                exc = response.exception
                outcomes.append(
                    DeliveryOutcome(
                        token=token,
                        success=False,
                        error_code=failure_reason(exc),
                        error_message=str(exc) if exc else None,
                    )
                )
        return outcomes

    def close(self) -> None:
        """Release the Firebase app."""
        firebase_admin.delete_app(self._app)


def get_push_client(request: Request) -> PushClient:
    """
    FastAPI dependency returning the push client built at startup.

    Raises:
        ConfigurationMissingError: If the application started without one
    """
    client = getattr(request.app.state, "push_client", None)
    if client is None:
        raise ConfigurationMissingError("Push delivery is not configured")
    return client
