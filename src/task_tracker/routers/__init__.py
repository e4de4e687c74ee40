"""API routers."""

from task_tracker.routers.health import router as health_router
from task_tracker.routers.tasks import router as tasks_router


__all__ = ["health_router", "tasks_router"]
