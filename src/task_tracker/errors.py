"""Domain errors and their HTTP mapping with OpenTelemetry trace context."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.trace import StatusCode


logger = logging.getLogger(__name__)


class TaskTrackerError(Exception):
    """Base class for errors raised by the task handlers."""


class TaskNotFoundError(TaskTrackerError):
    """Raised when a task id has no matching row in the store."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} not found")


def _record_error_on_span(exc: Exception, error_type: str, server_error: bool = False) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        span.record_exception(exc)
        span.set_attribute("error.type", error_type)
        if server_error:
            span.set_status(StatusCode.ERROR, str(exc))


def _error_body(detail: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": detail}

    # Add trace ID for debugging
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        body["trace_id"] = format(span_context.trace_id, "032x")

    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Register error handlers on the FastAPI app.

    Store failures (SQLAlchemy errors) are not mapped here; they
    surface as 500s through Starlette's server error handling.
    """

    @app.exception_handler(TaskNotFoundError)
    async def task_not_found_handler(request: Request, exc: TaskNotFoundError) -> JSONResponse:
        _record_error_on_span(exc, "not_found")
        logger.info("Task %s not found on %s %s", exc.task_id, request.method, request.url.path)
        return JSONResponse(status_code=404, content=_error_body(str(exc)))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _record_error_on_span(exc, "validation")
        logger.warning(
            "Validation error on %s %s: %s", request.method, request.url.path, exc.errors()
        )
        return JSONResponse(status_code=422, content=_error_body(jsonable_encoder(exc.errors())))
