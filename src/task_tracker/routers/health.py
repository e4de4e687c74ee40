"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from task_tracker.config import get_settings


router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request) -> JSONResponse:
    """Report service status and whether the task store answers ``SELECT 1``."""
    database_ok = request.app.state.database.ping()
    body: dict[str, Any] = {
        "status": "healthy" if database_ok else "unhealthy",
        "service": get_settings().service_name,
        "database": "healthy" if database_ok else "unhealthy",
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)
