"""Task event notification API endpoints.

Called by the warehouse client after a task is created or finished.
Both endpoints accept a JSON or form-urlencoded POST body, or GET query
parameters, and support a ``debug=1`` dry run.
"""

import json
import logging
from typing import Any, Iterable, Union
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ValidationError

from ..exceptions import BadRequestError
from ..schemas.events import TaskCreatedEvent, TaskFinishedEvent
from ..schemas.notification import DebugResponse, DispatchResponse, ErrorResponse
from ..services.notification_service import (
    NotificationService,
    NotifyOutcome,
    get_notification_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notify", tags=["Notifications"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed taskId"},
    404: {"model": ErrorResponse, "description": "Task not found"},
    500: {"model": ErrorResponse, "description": "Push delivery not configured"},
    502: {"model": ErrorResponse, "description": "Push provider call failed"},
}


async def read_event_payload(request: Request) -> dict[str, Any]:
    """
    Merge query parameters and the request body into one payload dict.

    Body fields win over query parameters. A key repeated in the query
    string or form body yields a list of its values.

    Raises:
        BadRequestError: If the body is not a JSON object or valid form data
    """
    data: dict[str, Any] = {}
    _merge_pairs(data, request.query_params.multi_items())
    if request.method != "POST":
        return data

    raw = await request.body()
    if not raw:
        return data

    content_type = request.headers.get("content-type", "").lower()
    if "application/x-www-form-urlencoded" in content_type:
        try:
            pairs = parse_qsl(raw.decode("utf-8"), keep_blank_values=True)
        except UnicodeDecodeError:
            raise BadRequestError("Malformed form body")
        _merge_pairs(data, pairs)
        return data

    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Malformed JSON body")
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")
    data.update(body)
    return data


def _merge_pairs(data: dict[str, Any], pairs: Iterable[tuple[str, str]]) -> None:
    grouped: dict[str, list[str]] = {}
    for key, value in pairs:
        grouped.setdefault(key, []).append(value)
    for key, values in grouped.items():
        data[key] = values if len(values) > 1 else values[0]


def parse_event(model: type[BaseModel], data: dict[str, Any]):
    """
    Validate an event payload.

    Raises:
        BadRequestError: With a short message naming the first problem
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BadRequestError(_validation_message(e))


def _validation_message(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ())) or "payload"
    if error.get("type") == "missing":
        return f"Missing {field}"
    message = str(error.get("msg", "Invalid payload"))
    return message.removeprefix("Value error, ")


def is_debug(request: Request) -> bool:
    return request.query_params.get("debug", "").strip() == "1"


def to_response(outcome: NotifyOutcome) -> Union[DispatchResponse, DebugResponse]:
    """Render a pipeline outcome as an API response."""
    if outcome.dry_run:
        return DebugResponse(
            task_id=outcome.task.id,
            path=outcome.task.path,
            title=outcome.task.title,
            recipients_count=len(outcome.recipients),
            tokens_count=len(outcome.batch),
        )
    return DispatchResponse(
        sent=outcome.sent,
        failed=outcome.failed,
        tokens_tried=outcome.tokens_tried,
        info=None if outcome.tokens_tried else "no tokens",
    )


@router.api_route(
    "/task-created",
    methods=["GET", "POST"],
    response_model=Union[DispatchResponse, DebugResponse],
    response_model_exclude_none=True,
    summary="Notify about a created task",
    description=(
        "Push a notification to the task's assignees, or to opted-in "
        "storekeepers when the task has no assignee."
    ),
    responses=_ERROR_RESPONSES,
)
async def task_created(
    request: Request,
    service: NotificationService = Depends(get_notification_service),
) -> Union[DispatchResponse, DebugResponse]:
    """
    Notify recipients of a new task.

    - **taskId**: Task id or full document path (required)
    - **assigneeIds**: Optional list or comma-joined string of user ids
    - **debug=1**: Resolve recipients and tokens without sending
    """
    event = parse_event(TaskCreatedEvent, await read_event_payload(request))
    outcome = await service.notify_task_created(event, dry_run=is_debug(request))
    return to_response(outcome)


@router.api_route(
    "/task-finished",
    methods=["GET", "POST"],
    response_model=Union[DispatchResponse, DebugResponse],
    response_model_exclude_none=True,
    summary="Notify managers about a finished task",
    description="Push a completion notification to every manager.",
    responses=_ERROR_RESPONSES,
)
async def task_finished(
    request: Request,
    service: NotificationService = Depends(get_notification_service),
) -> Union[DispatchResponse, DebugResponse]:
    """
    Notify managers that a task was completed.

    - **taskId**: Task id or full document path (required)
    - **debug=1**: Resolve recipients and tokens without sending
    """
    event = parse_event(TaskFinishedEvent, await read_event_payload(request))
    outcome = await service.notify_task_finished(event, dry_run=is_debug(request))
    return to_response(outcome)
