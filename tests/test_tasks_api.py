"""Tests for task CRUD endpoints."""

from datetime import datetime
from unittest.mock import patch

from sqlalchemy.exc import OperationalError


def _ts(value):
    return datetime.fromisoformat(value)


def _create(client, title="Test task", description=None):
    return client.post("/tasks", json={"title": title, "description": description})


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "service": "task-tracker",
            "database": "healthy",
        }

    def test_health_database_down(self, client, database):
        with patch.object(database, "ping", return_value=False):
            response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["database"] == "unhealthy"


class TestCreateTask:
    def test_create_task(self, client):
        response = _create(client, "Test task", "Some notes")
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Test task"
        assert data["description"] == "Some notes"
        assert data["completed"] is False
        assert data["created_at"] == data["updated_at"]
        assert "id" in data

    def test_create_task_without_description(self, client):
        response = client.post("/tasks", json={"title": "Bare"})
        assert response.status_code == 201
        assert response.json()["description"] is None

    def test_create_task_no_title(self, client):
        response = client.post("/tasks", json={})
        assert response.status_code == 422

    def test_create_task_empty_title(self, client):
        response = client.post("/tasks", json={"title": ""})
        assert response.status_code == 422
        assert "detail" in response.json()


class TestListTasks:
    def test_list_tasks_empty(self, client):
        response = client.get("/tasks")
        assert response.status_code == 200
        assert response.json() == []

    def test_list_tasks_newest_first(self, client):
        for i in range(3):
            _create(client, f"Task {i}")
        response = client.get("/tasks")
        assert response.status_code == 200
        assert [t["title"] for t in response.json()] == ["Task 2", "Task 1", "Task 0"]


class TestGetTask:
    def test_get_task(self, client):
        task_id = _create(client, "Get me").json()["id"]

        response = client.get(f"/tasks/{task_id}")
        assert response.status_code == 200
        assert response.json()["title"] == "Get me"

    def test_get_task_not_found(self, client):
        response = client.get("/tasks/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Task with ID 999 not found"

    def test_get_task_negative_id(self, client):
        response = client.get("/tasks/-5")
        assert response.status_code == 404


class TestUpdateTask:
    def test_update_completed(self, client):
        created = _create(client, "A").json()

        response = client.patch(f"/tasks/{created['id']}", json={"completed": True})
        assert response.status_code == 200
        data = response.json()
        assert data["completed"] is True
        assert data["title"] == "A"
        assert data["created_at"] == created["created_at"]
        assert _ts(data["updated_at"]) > _ts(created["updated_at"])

    def test_null_description_clears(self, client):
        created = _create(client, "A", "notes").json()

        response = client.patch(f"/tasks/{created['id']}", json={"description": None})
        assert response.status_code == 200
        assert response.json()["description"] is None
        assert response.json()["title"] == "A"

    def test_omitted_description_kept(self, client):
        created = _create(client, "A", "notes").json()

        response = client.patch(f"/tasks/{created['id']}", json={"title": "B"})
        assert response.json()["description"] == "notes"

    def test_empty_body_touches_timestamp(self, client):
        created = _create(client, "A").json()

        response = client.patch(f"/tasks/{created['id']}", json={})
        assert response.status_code == 200
        assert _ts(response.json()["updated_at"]) > _ts(created["updated_at"])

    def test_null_title_rejected(self, client):
        created = _create(client, "A").json()

        response = client.patch(f"/tasks/{created['id']}", json={"title": None})
        assert response.status_code == 422

    def test_update_not_found(self, client):
        response = client.patch("/tasks/99999", json={"title": "X"})
        assert response.status_code == 404
        assert "99999" in response.json()["detail"]


class TestDeleteTask:
    def test_delete_task(self, client):
        task_id = _create(client).json()["id"]

        response = client.delete(f"/tasks/{task_id}")
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get(f"/tasks/{task_id}").status_code == 404

    def test_delete_not_found(self, client):
        response = client.delete("/tasks/99999")
        assert response.status_code == 404
        assert "99999" in response.json()["detail"]


class TestSummary:
    def test_summary_counts(self, client):
        ids = [_create(client, f"Task {i}").json()["id"] for i in range(3)]
        client.patch(f"/tasks/{ids[0]}", json={"completed": True})

        response = client.get("/tasks/summary")
        assert response.status_code == 200
        assert response.json() == {"total": 3, "active": 2, "completed": 1}


def test_store_failure_is_not_reinterpreted(app):
    from fastapi.testclient import TestClient

    client = TestClient(app, raise_server_exceptions=False)
    with patch(
        "task_tracker.services.get_tasks",
        side_effect=OperationalError("SELECT", {}, Exception("connection lost")),
    ):
        response = client.get("/tasks")
    assert response.status_code == 500


def test_lifespan_opens_and_closes_store():
    from fastapi.testclient import TestClient

    from task_tracker.database import Database
    from task_tracker.main import create_app

    store = Database("sqlite://")
    app = create_app()
    with (
        patch("task_tracker.main.Database.from_settings", return_value=store),
        patch.object(store, "close") as mock_close,
    ):
        with TestClient(app) as client:
            assert app.state.database is store
            assert client.post("/tasks", json={"title": "Boot"}).status_code == 201
        mock_close.assert_called_once()
    store.close()
