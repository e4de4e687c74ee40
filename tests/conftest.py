"""Pytest fixtures for the task tracker."""

import os


# Set env vars before importing anything from task_tracker
os.environ["OTEL_SDK_DISABLED"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from task_tracker.database import Database
from task_tracker.main import create_app


@pytest.fixture
def database():
    # In-memory SQLite, shared through a StaticPool
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.close()


@pytest.fixture
def session(database: Database):
    with database.session() as session:
        yield session


@pytest.fixture
def app(database: Database):
    return create_app(database)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_task(session: Session):
    from task_tracker.schemas import TaskCreate
    from task_tracker.services import create_task

    def _make(title: str = "Original Task", description: str | None = "Original description"):
        return create_task(session, TaskCreate(title=title, description=description))

    return _make
