"""SQL-backed task store with dated archive partitions.

Lookup order:
1. A full document path (``tasks/<id>`` or ``archives/<YYYY-MM-DD>/tasks/<id>``)
   is tried directly when the identifier contains a slash.
2. The primary Tasks table.
3. The TaskArchives partitions, one UTC day at a time from today back
   ``lookback_days`` days.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..exceptions import TaskNotFoundError
from ..models.task import ArchivedTask, Task
from ..schemas.task import TaskRecord

logger = logging.getLogger(__name__)


def utc_today() -> date:
    """Current UTC date."""
    return datetime.now(timezone.utc).date()


def primary_path(task_id: str) -> str:
    return f"tasks/{task_id}"


def archive_path(day: date, task_id: str) -> str:
    return f"archives/{day.isoformat()}/tasks/{task_id}"


class SqlTaskStore:
    """
    Task store backed by the Tasks and TaskArchives tables.

    Args:
        db: Database session
        lookback_days: Number of archive days searched before giving up
        today: Clock returning the current UTC date
    """

    def __init__(
        self,
        db: AsyncSession,
        lookback_days: int = 60,
        today: Callable[[], date] = utc_today,
    ):
        self._db = db
        self._lookback_days = max(0, lookback_days)
        self._today = today

    async def get_task(self, task_id: str) -> TaskRecord:
        """
        Find a task in the primary collection or the archive partitions.

        Raises:
            TaskNotFoundError: If no partition holds the task
        """
        if "/" in task_id:
            record = await self._get_by_path(task_id)
            if record is not None:
                return record
            task_id = task_id.rstrip("/").rsplit("/", 1)[-1]

        record = await self._get_primary(task_id)
        if record is not None:
            return record

        today = self._today()
        for offset in range(self._lookback_days + 1):
            record = await self._get_archived(today - timedelta(days=offset), task_id)
            if record is not None:
                return record

        logger.info(
            f"Task {task_id} not found in primary store or "
            f"{self._lookback_days + 1} archive partitions"
        )
        raise TaskNotFoundError(task_id)

    async def _get_by_path(self, path: str) -> Optional[TaskRecord]:
        parts = [p for p in path.split("/") if p]
        if len(parts) == 2 and parts[0] == "tasks":
            return await self._get_primary(parts[1])
        if len(parts) == 4 and parts[0] == "archives" and parts[2] == "tasks":
            try:
                day = date.fromisoformat(parts[1])
            except ValueError:
                return None
            return await self._get_archived(day, parts[3])
        return None

    async def _get_primary(self, task_id: str) -> Optional[TaskRecord]:
        result = await self._db.execute(select(Task).where(Task.id == task_id))
        task = result.scalar_one_or_none()
        if task is None:
            return None
        return _to_record(task, primary_path(task_id))

    async def _get_archived(self, day: date, task_id: str) -> Optional[TaskRecord]:
        result = await self._db.execute(
            select(ArchivedTask).where(
                ArchivedTask.archive_day == day,
                ArchivedTask.id == task_id,
            )
        )
        task = result.scalar_one_or_none()
        if task is None:
            return None
        return _to_record(task, archive_path(day, task_id))


def _to_record(task, path: str) -> TaskRecord:
    return TaskRecord(
        id=task.id,
        title=task.title,
        comment=task.comment,
        created_by=task.created_by,
        assignee_ids=list(task.assignee_ids) if task.assignee_ids is not None else None,
        assignee_names=list(task.assignee_names or []),
        taken_by_name=task.taken_by_name,
        path=path,
    )


def get_task_store(db: AsyncSession = Depends(get_db)) -> SqlTaskStore:
    """FastAPI dependency for the request-scoped task store."""
    return SqlTaskStore(db, lookback_days=settings.archive_lookback_days)
