"""
Storage error taxonomy and the FastAPI handlers that surface it.

Adapters raise these after translating SDK and filesystem errors, so routers and
the CLI only ever see ``StorageError`` subclasses from the gateway.
"""

import logging

import pydantic
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for every error raised by the storage gateway."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, resource: str | None = None):
        super().__init__(message)
        self.message = message
        self.resource = resource


class StorageUnavailable(StorageError):
    """Transient network or service fault that outlived the retry budget."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ResourceConflict(StorageError):
    """A key that must be new already exists."""

    status_code = status.HTTP_409_CONFLICT


class InvalidInput(StorageError):
    """Empty file, unusable filename or malformed configuration."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(StorageError):
    """A blob or record requested by a read does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


async def handle_storage_errors(request: Request, exc: StorageError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    errors = exc.errors()
    return JSONResponse(
        status_code=422,
        content={
            "detail": [
                {
                    "msg": error["msg"],
                    "input": error.get("input"),
                }
                for error in errors
            ]
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates out of a route as a 500."""
    try:
        return await call_next(request)
    except Exception as err:
        logger.exception(err)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
