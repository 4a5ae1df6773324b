"""Shared pytest fixtures for backend tests."""

from typing import AsyncGenerator, Iterable, Optional, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from task_notify.database import Base
from task_notify.exceptions import TaskNotFoundError
from task_notify.main import app
from task_notify.schemas.notification import NotificationPayload
from task_notify.schemas.task import TaskRecord
from task_notify.schemas.user import UserRecord
from task_notify.services.ports import DeliveryOutcome
from task_notify.services.push_client import get_push_client
from task_notify.services.task_store import get_task_store
from task_notify.services.user_directory import get_user_directory


# ============================================================================
# Record builders
# ============================================================================


def make_user(
    user_id: str,
    role: Optional[str] = None,
    opted_in: bool = False,
    tokens: Iterable[str] = (),
) -> UserRecord:
    """Build a user record for the fake directory."""
    return UserRecord(
        id=user_id,
        display_name=user_id.upper(),
        role=role,
        pickup_opt_in=opted_in,
        fcm_tokens=list(tokens),
    )


def make_task(
    task_id: str,
    author: Optional[str] = "u0",
    assignees: Optional[list[str]] = None,
    title: str = "Move pallets",
    **extra,
) -> TaskRecord:
    """Build a task record for the fake task store."""
    return TaskRecord(
        id=task_id,
        title=title,
        created_by=author,
        assignee_ids=assignees,
        path=f"tasks/{task_id}",
        **extra,
    )


# ============================================================================
# In-memory collaborators
# ============================================================================


class FakeTaskStore:
    """Task store over a dict."""

    def __init__(self, tasks: Iterable[TaskRecord] = ()):
        self.tasks = {task.id: task for task in tasks}
        self.lookups: list[str] = []

    def add(self, task: TaskRecord) -> None:
        self.tasks[task.id] = task

    async def get_task(self, task_id: str) -> TaskRecord:
        self.lookups.append(task_id)
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        return self.tasks[task_id]


class FakeUserDirectory:
    """User directory over a dict, recording every call."""

    def __init__(self, users: Iterable[UserRecord] = ()):
        self.users = {user.id: user for user in users}
        self.get_calls: list[str] = []
        self.removals: list[tuple[str, list[str]]] = []
        self.fail_for: set[str] = set()

    def add(self, user: UserRecord) -> None:
        self.users[user.id] = user

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        self.get_calls.append(user_id)
        return self.users.get(user_id)

    async def users_where(self, **equals) -> list[UserRecord]:
        return [
            user
            for user in self.users.values()
            if all(getattr(user, field) == value for field, value in equals.items())
        ]

    async def remove_tokens(self, user_id: str, tokens: Sequence[str]) -> int:
        if user_id in self.fail_for:
            raise RuntimeError(f"update rejected for {user_id}")
        self.removals.append((user_id, list(tokens)))
        user = self.users.get(user_id)
        if user is None:
            return 0
        doomed = set(tokens)
        kept = [t for t in user.fcm_tokens if t not in doomed]
        self.users[user_id] = user.model_copy(update={"fcm_tokens": kept})
        return len(user.fcm_tokens) - len(kept)


class FakePushClient:
    """
    Push client recording each multicast call.

    Tokens listed in ``failures`` fail with the given (code, message);
    every other token succeeds. Set ``error`` to make the call itself raise.
    """

    def __init__(self):
        self.calls: list[tuple[list[str], NotificationPayload]] = []
        self.failures: dict[str, tuple[str, str]] = {}
        self.error: Optional[Exception] = None

    async def send_multicast(
        self,
        tokens: Sequence[str],
        payload: NotificationPayload,
    ) -> list[DeliveryOutcome]:
        self.calls.append((list(tokens), payload))
        if self.error is not None:
            raise self.error
        outcomes = []
        for i, token in enumerate(tokens):
            if token in self.failures:
                code, message = self.failures[token]
                outcomes.append(
                    DeliveryOutcome(token=token, success=False, error_code=code, error_message=message)
                )
            else:
                outcomes.append(DeliveryOutcome(token=token, success=True, message_id=f"msg-{i}"))
        return outcomes


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def task_store() -> FakeTaskStore:
    return FakeTaskStore()


@pytest.fixture
def directory() -> FakeUserDirectory:
    return FakeUserDirectory()


@pytest.fixture
def push_client() -> FakePushClient:
    return FakePushClient()


@pytest_asyncio.fixture
async def client(
    task_store: FakeTaskStore,
    directory: FakeUserDirectory,
    push_client: FakePushClient,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the stores and push client replaced by fakes."""
    app.dependency_overrides[get_task_store] = lambda: task_store
    app.dependency_overrides[get_user_directory] = lambda: directory
    app.dependency_overrides[get_push_client] = lambda: push_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Async session on a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()
