import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from task_tracker.config import get_settings
from task_tracker.database import Database
from task_tracker.errors import register_exception_handlers
from task_tracker.middleware import MetricsMiddleware
from task_tracker.routers import health_router, tasks_router
from task_tracker.telemetry import (
    configure_logging,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_telemetry,
)


logger = logging.getLogger(__name__)

settings = get_settings()

configure_logging(settings.log_level)

# Initialize OTel SDK BEFORE app creation
setup_telemetry(
    service_name=settings.service_name,
    otlp_endpoint=settings.otlp_endpoint,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    database: Database | None = getattr(app.state, "database", None)
    if database is None:
        database = Database.from_settings(settings)
        app.state.database = database

    instrument_sqlalchemy(database.engine)
    database.create_all()
    logger.info("Task store opened")
    try:
        yield
    finally:
        database.close()


def create_app(database: Database | None = None) -> FastAPI:
    """Build the API. ``database`` is opened from settings at startup when omitted."""
    app = FastAPI(title="Task Tracker", lifespan=lifespan)
    if database is not None:
        app.state.database = database

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    instrument_fastapi(app)

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(tasks_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("task_tracker.main:app", host=settings.host, port=settings.port)
