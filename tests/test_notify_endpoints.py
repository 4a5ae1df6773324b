"""Integration tests for the task notification endpoints."""

import pytest
from httpx import AsyncClient

from task_notify.main import app
from task_notify.services.push_client import get_push_client

from .conftest import FakePushClient, FakeTaskStore, FakeUserDirectory, make_task, make_user


class ProviderDown(Exception):
    code = "UNAVAILABLE"


@pytest.fixture(autouse=True)
def warehouse(task_store: FakeTaskStore, directory: FakeUserDirectory):
    """Seed the fakes with a small warehouse team."""
    for user in [
        make_user("u0", role="Manager", tokens=["c"]),
        make_user("u1", role="Storekeeper", tokens=["a", "b"]),
        make_user("u2", role="Storekeeper", tokens=["b", "c"]),
        make_user("m1", role="менеджер", tokens=["m"]),
        make_user("s1", role="Кладовщик", opted_in=True, tokens=["s"]),
        make_user("h1", role="Старший", opted_in=True, tokens=["h"]),
    ]:
        directory.add(user)
    task_store.add(make_task("t1", author="u0", assignees=["u1", "u2"], comment="Dock 4"))
    task_store.add(make_task("t2", author="s1", assignees=None))
    task_store.add(make_task("t3", author="u1", assignees=["u1"], taken_by_name="Ivan"))


@pytest.mark.asyncio
class TestTaskCreated:
    """Tests for POST/GET /api/notify/task-created."""

    async def test_assigned_with_shared_and_author_tokens(
        self, client: AsyncClient, push_client: FakePushClient
    ):
        """Test shared tokens are sent once and the author's device is skipped."""
        response = await client.post("/api/notify/task-created", json={"taskId": "t1"})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "sent": 2, "failed": 0, "tokensTried": 2}
        assert len(push_client.calls) == 1
        tokens, payload = push_client.calls[0]
        assert tokens == ["a", "b"]
        assert payload.title == "New task"
        assert payload.body == "Move pallets: Dock 4"
        assert payload.data["taskId"] == "t1"

    async def test_pickup_broadcast(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.post("/api/notify/task-created", json={"taskId": "t2"})

        assert response.status_code == 200
        tokens, payload = push_client.calls[0]
        # s1 is the author, so only the Head receives the pickup push
        assert tokens == ["h"]
        assert payload.title == "New pickup task"
        assert payload.data["mode"] == "pickup"

    async def test_pickup_excludes_opted_in_manager(
        self,
        client: AsyncClient,
        push_client: FakePushClient,
        directory: FakeUserDirectory,
        task_store: FakeTaskStore,
    ):
        """Test an opted-in storekeeper gets [x] and an opted-in manager is filtered out."""
        directory.users.clear()
        directory.add(make_user("u3", role="Storekeeper", opted_in=True, tokens=["x"]))
        directory.add(make_user("u4", role="Manager", opted_in=True, tokens=["y"]))
        task_store.add(make_task("T2", author="u9", assignees=None))

        response = await client.post("/api/notify/task-created", json={"taskId": "T2"})

        assert response.json()["sent"] == 1
        assert push_client.calls[0][0] == ["x"]

    async def test_explicit_assignees_as_comma_string(
        self, client: AsyncClient, push_client: FakePushClient
    ):
        response = await client.post(
            "/api/notify/task-created",
            json={"taskId": "t2", "assigneeIds": "m1, u1"},
        )

        assert response.status_code == 200
        assert push_client.calls[0][0] == ["m", "a", "b"]

    async def test_form_encoded_body(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.post("/api/notify/task-created", data={"taskId": "t1"})

        assert response.status_code == 200
        assert response.json()["sent"] == 2

    async def test_get_with_query_params(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.get("/api/notify/task-created", params={"taskid": "t1"})

        assert response.status_code == 200
        assert push_client.calls[0][0] == ["a", "b"]

    async def test_no_tokens_is_a_noop(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.post(
            "/api/notify/task-created",
            json={"taskId": "t1", "assigneeIds": ["ghost"]},
        )

        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "sent": 0,
            "failed": 0,
            "tokensTried": 0,
            "info": "no tokens",
        }
        assert push_client.calls == []

    async def test_missing_task_id(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.post("/api/notify/task-created", json={})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Missing taskId", "kind": "bad_request"}
        assert push_client.calls == []

    async def test_blank_task_id(self, client: AsyncClient):
        response = await client.post("/api/notify/task-created", json={"taskId": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing taskId"

    async def test_malformed_json(self, client: AsyncClient):
        response = await client.post(
            "/api/notify/task-created",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "bad_request"

    async def test_malformed_form_body(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.post(
            "/api/notify/task-created",
            content=b"taskId=\xff\xfe",
            headers={"content-type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "error": "Malformed form body",
            "kind": "bad_request",
        }
        assert push_client.calls == []

    async def test_repeated_query_assignees(
        self, client: AsyncClient, push_client: FakePushClient
    ):
        response = await client.get(
            "/api/notify/task-created?taskId=t2&assigneeIds=m1&assigneeIds=u1"
        )

        assert response.status_code == 200
        assert push_client.calls[0][0] == ["m", "a", "b"]

    async def test_repeated_form_assignees(
        self, client: AsyncClient, push_client: FakePushClient
    ):
        response = await client.post(
            "/api/notify/task-created",
            content=b"taskId=t2&assigneeIds=m1&assigneeIds=u1",
            headers={"content-type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 200
        assert push_client.calls[0][0] == ["m", "a", "b"]

    async def test_form_body_overrides_query(
        self, client: AsyncClient, push_client: FakePushClient
    ):
        response = await client.post(
            "/api/notify/task-created?taskId=t2&assigneeIds=m1",
            content=b"assigneeIds=u1",
            headers={"content-type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 200
        assert push_client.calls[0][0] == ["a", "b"]

    async def test_unknown_task(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.post("/api/notify/task-created", json={"taskId": "missing"})

        assert response.status_code == 404
        assert response.json() == {"ok": False, "error": "task not found", "kind": "not_found"}
        assert push_client.calls == []

    async def test_debug_dry_run(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.post("/api/notify/task-created?debug=1", json={"taskId": "t1"})

        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "mode": "debug",
            "taskId": "t1",
            "path": "tasks/t1",
            "title": "Move pallets",
            "recipientsCount": 2,
            "tokensCount": 2,
        }
        assert push_client.calls == []

    async def test_provider_failure(self, client: AsyncClient, push_client: FakePushClient):
        push_client.error = ProviderDown("backend unavailable")

        response = await client.post("/api/notify/task-created", json={"taskId": "t1"})

        assert response.status_code == 502
        body = response.json()
        assert body["ok"] is False
        assert body["kind"] == "UNAVAILABLE"

    async def test_stale_tokens_are_removed(
        self,
        client: AsyncClient,
        push_client: FakePushClient,
        directory: FakeUserDirectory,
    ):
        push_client.failures["b"] = ("unregistered", "Requested entity was not found.")

        response = await client.post("/api/notify/task-created", json={"taskId": "t1"})

        assert response.json() == {"ok": True, "sent": 1, "failed": 1, "tokensTried": 2}
        # "b" was attributed to u1, the first recipient holding it
        assert directory.removals == [("u1", ["b"])]
        assert directory.users["u1"].fcm_tokens == ["a"]
        assert directory.users["u2"].fcm_tokens == ["b", "c"]

    async def test_cleanup_failure_does_not_fail_request(
        self,
        client: AsyncClient,
        push_client: FakePushClient,
        directory: FakeUserDirectory,
    ):
        push_client.failures["a"] = ("unregistered", "Requested entity was not found.")
        directory.fail_for.add("u1")

        response = await client.post("/api/notify/task-created", json={"taskId": "t1"})

        assert response.status_code == 200
        assert response.json()["failed"] == 1

    async def test_push_not_configured(self, client: AsyncClient):
        app.dependency_overrides.pop(get_push_client)

        response = await client.post("/api/notify/task-created", json={"taskId": "t1"})

        assert response.status_code == 500
        assert response.json()["kind"] == "configuration_missing"


@pytest.mark.asyncio
class TestTaskFinished:
    """Tests for POST/GET /api/notify/task-finished."""

    async def test_notifies_managers_except_author(
        self, client: AsyncClient, push_client: FakePushClient
    ):
        """Test u0 (author and manager) is excluded; m1 gets the push."""
        response = await client.post("/api/notify/task-finished", json={"taskId": "t1"})

        assert response.status_code == 200
        assert response.json()["sent"] == 1
        tokens, payload = push_client.calls[0]
        assert tokens == ["m"]
        assert payload.title == "Task completed"
        assert payload.data == {"taskId": "t1", "event": "task_finished"}

    async def test_all_managers_when_author_is_not_one(
        self, client: AsyncClient, push_client: FakePushClient
    ):
        response = await client.get("/api/notify/task-finished", params={"taskId": "t3"})

        assert response.status_code == 200
        assert push_client.calls[0][0] == ["c", "m"]
        assert push_client.calls[0][1].body == '"Move pallets" completed (Ivan)'

    async def test_author_token_never_sent(
        self,
        client: AsyncClient,
        push_client: FakePushClient,
        directory: FakeUserDirectory,
        task_store: FakeTaskStore,
    ):
        """Test a manager sharing the author's device does not get it pushed."""
        directory.add(make_user("m2", role="Manager", tokens=["x"]))
        directory.add(make_user("k1", role="Storekeeper", tokens=["x"]))
        task_store.add(make_task("t4", author="k1", assignees=["k1"]))

        await client.post("/api/notify/task-finished", json={"taskId": "t4"})

        assert "x" not in push_client.calls[0][0]

    async def test_debug_dry_run(self, client: AsyncClient, push_client: FakePushClient):
        response = await client.get("/api/notify/task-finished?taskId=t3&debug=1")

        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == "debug"
        assert body["recipientsCount"] == 2
        assert body["tokensCount"] == 2
        assert push_client.calls == []

    async def test_missing_task_id(self, client: AsyncClient):
        response = await client.get("/api/notify/task-finished")

        assert response.status_code == 400
        assert response.json()["error"] == "Missing taskId"

    async def test_unknown_task(self, client: AsyncClient):
        response = await client.post("/api/notify/task-finished", json={"taskId": "nope"})

        assert response.status_code == 404


@pytest.mark.asyncio
class TestHealth:
    """Tests for the health endpoints."""

    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_reports_push_state(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert "ready" in response.json()["push"]
