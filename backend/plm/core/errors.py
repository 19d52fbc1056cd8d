"""Tagged error hierarchy raised by the service layer.

Services raise these instead of ``HTTPException`` so that the same code paths
can run inside request handlers, background tasks and the arq worker. The
FastAPI app registers a single handler that maps each kind to its status code.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PLMError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(PLMError):
    """A model, approval or other referenced record does not exist."""

    status_code = 404

    def __init__(self, resource: str, resource_id: object | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ForbiddenError(PLMError):
    """The caller's role is not allowed to perform the action."""

    status_code = 403


class InvalidArgumentError(PLMError):
    """An argument is outside its allowed set of values."""

    status_code = 400


class InternalError(PLMError):
    """A persistence failure rolled back the unit of work."""

    status_code = 500

    def __init__(self, message: str = "Server error") -> None:
        super().__init__(message)


async def plm_error_handler(request: Request, exc: PLMError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PLMError, plm_error_handler)  # type: ignore[arg-type]
