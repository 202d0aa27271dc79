"""
Application error types and their HTTP rendering.

Every error response uses the same envelope::

    {"success": false, "message": "...", "error": "..."}

``error`` is only present when there is an underlying cause worth showing.
"""

import functools
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TripPlannerError(Exception):
    """Base exception for all application errors."""

    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        self.message = message
        self.error = error
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class ValidationError(TripPlannerError):
    """Missing or malformed required field."""

    status_code = 400


class ConflictError(TripPlannerError):
    """Duplicate resource, e.g. an email that is already registered."""

    status_code = 400


class NotFoundError(TripPlannerError):
    status_code = 404


class StoreError(TripPlannerError):
    """Underlying persistence failure."""

    status_code = 500


def error_response(exc: TripPlannerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _handle_app_error(request: Request, exc: TripPlannerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    logger.warning("%s %s invalid body: %s", request.method, request.url.path, problems)
    return error_response(ValidationError("Invalid request data", "; ".join(problems)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TripPlannerError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)


def api_route(failure_message: str) -> Callable:
    """
    Wrap a route handler so unexpected failures surface as StoreError.

    Categorized errors (validation, conflict, not found) pass through
    untouched. Anything else, including a StoreError raised further down, is
    logged and re-raised as StoreError carrying ``failure_message`` and the
    original error text.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except TripPlannerError as exc:
                if exc.status_code < 500:
                    raise
                logger.error("%s failed: %s", func.__name__, exc)
                raise StoreError(failure_message, exc.error or exc.message) from exc
            except Exception as exc:
                logger.exception("%s failed", func.__name__)
                raise StoreError(failure_message, str(exc)) from exc

        return wrapper

    return decorator
