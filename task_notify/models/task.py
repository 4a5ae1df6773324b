"""Task SQLAlchemy models for live and archived warehouse tasks."""

from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, String, Text

from ..database import Base


class TaskColumnsMixin:
    """
    Columns shared by live tasks and their dated archive copies.

    Attributes:
        id: Unique identifier (document id)
        title: Task title
        comment: Optional free-text comment from the author
        created_by: ID of the user who created the task
        assignee_ids: Directed assignees; NULL or empty for a pickup task
        assignee_names: Display names matching assignee_ids
        taken_by_name: Display name of the user who completed the task
        created_at: Timestamp when task was created
    """

    id = Column(
        String(128),
        primary_key=True,
        nullable=False,
    )
    title = Column(
        String(500),
        nullable=False,
    )
    comment = Column(
        Text,
        nullable=True,
    )
    created_by = Column(
        String(128),
        nullable=True,
        index=True,
    )
    assignee_ids = Column(
        JSON,
        nullable=True,
    )
    assignee_names = Column(
        JSON,
        nullable=True,
    )
    taken_by_name = Column(
        String(100),
        nullable=True,
    )
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )


class Task(TaskColumnsMixin, Base):
    """Task model for the primary (live) task collection."""

    __tablename__ = "Tasks"
    __allow_unmapped__ = True

    def __repr__(self) -> str:
        """String representation of Task."""
        return f"<Task(id={self.id}, title={self.title})>"


class ArchivedTask(TaskColumnsMixin, Base):
    """
    Archived task stored in a dated partition.

    One partition exists per UTC day; the composite key (archive_day, id)
    mirrors the ``archives/<YYYY-MM-DD>/tasks/<id>`` document layout.
    """

    __tablename__ = "TaskArchives"
    __allow_unmapped__ = True

    archive_day = Column(
        Date,
        primary_key=True,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation of ArchivedTask."""
        return f"<ArchivedTask(day={self.archive_day}, id={self.id})>"
