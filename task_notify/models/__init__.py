"""SQLAlchemy ORM models package."""

from .task import ArchivedTask, Task
from .user import User

__all__ = [
    "ArchivedTask",
    "Task",
    "User",
]
