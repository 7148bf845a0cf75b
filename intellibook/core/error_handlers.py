# intellibook/core/error_handlers.py
"""Translate scheduling errors into JSON responses"""
import logging

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import JSONResponse

from intellibook.core.exceptions import SchedulingError, StorageError

logger = logging.getLogger(__name__)


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    if isinstance(exc, StorageError):
        logger.error(f"Storage failure on {request.method} {request.url.path} [{correlation_id}]")
    else:
        logger.info(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}"
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(SchedulingError, scheduling_error_handler)
