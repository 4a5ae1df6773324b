"""Task media cleanup API endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..exceptions import NotifyError
from ..schemas.media import MediaDeleteRequest, MediaDeleteResponse
from ..schemas.notification import ErrorResponse
from ..services.media_service import MediaService, MediaServiceError, get_media_service
from .notify import parse_event, read_event_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/media", tags=["Media"])


@router.get(
    "/ping",
    summary="Check media storage",
    description="Report which MinIO settings are present and whether the media buckets exist.",
)
async def ping_media(
    media: MediaService = Depends(get_media_service),
) -> dict:
    """Diagnostic check of the media storage configuration."""
    env = {
        "MINIO_ENDPOINT": bool(settings.minio_endpoint),
        "MINIO_ACCESS_KEY": bool(settings.minio_access_key),
        "MINIO_SECRET_KEY": bool(settings.minio_secret_key),
    }
    if not settings.media_configured:
        return {"ok": True, "env": env, "cfgOk": False, "buckets": None}
    try:
        buckets = await run_in_threadpool(media.ping)
    except MediaServiceError as e:
        raise NotifyError(str(e), kind="media")
    return {"ok": True, "env": env, "cfgOk": True, "buckets": buckets}


@router.post(
    "/delete",
    response_model=MediaDeleteResponse,
    response_model_exclude_none=True,
    summary="Delete task media",
    description=(
        "Delete explicit objects (publicIds) or every object stored under "
        "tasks/<taskId>/ from all media buckets."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Malformed body"},
        500: {"model": ErrorResponse, "description": "Media storage not configured or failed"},
    },
)
async def delete_media(
    request: Request,
    media: MediaService = Depends(get_media_service),
) -> MediaDeleteResponse:
    """
    Delete task media.

    - **publicIds**: Object keys as a list or comma-joined string
    - **taskId**: Used when no publicIds are given
    """
    body = parse_event(MediaDeleteRequest, await read_event_payload(request))

    if not body.public_ids and not body.task_id:
        return MediaDeleteResponse(deleted=0, mode="noop")

    try:
        if body.public_ids:
            deleted = await run_in_threadpool(media.delete_objects, body.public_ids)
            logger.info(f"Deleted {deleted} media object(s) by key")
            return MediaDeleteResponse(deleted=deleted, mode="byPublicIds")

        prefix = f"tasks/{body.task_id}/"
        deleted = await run_in_threadpool(media.delete_prefix, prefix)
        logger.info(f"Deleted {deleted} media object(s) under {prefix}")
        return MediaDeleteResponse(deleted=deleted, mode="byTaskPrefix", prefix=prefix)
    except MediaServiceError as e:
        raise NotifyError(str(e), kind="media")
