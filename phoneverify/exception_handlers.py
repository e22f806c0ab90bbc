"""
Exception handlers for the API.

Register these on a FastAPI app instance via `register_exception_handlers(app)`.
Expected verification outcomes never reach here; they are returned as
structured results by the service. What lands here is storage failure and
anything unexpected.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .core.env import is_local_env
from .core.errors import StorageError, AccountReconciliationError

logger = logging.getLogger("phoneverify")


def _internal_error(exc: Exception) -> JSONResponse:
    # Details only outside production; they are always in the logs
    if is_local_env():
        content = {"detail": f"Internal server error: {exc}"}
    else:
        content = {"detail": "Internal server error"}
    return JSONResponse(status_code=500, content=content)


async def storage_error_handler(request: Request, exc: StorageError):
    """Store failures are never reported as verification outcomes."""
    request_id = getattr(request.state, "request_id", None)
    if isinstance(exc, AccountReconciliationError):
        logger.error(
            f"Reconciliation required for user {exc.user_id}, verification {exc.verification_id} "
            f"(request_id={request_id})",
            exc_info=exc,
        )
    else:
        logger.error(
            f"Storage error on {request.method} {request.url.path} (request_id={request_id}): {exc}",
            exc_info=exc,
        )
    return _internal_error(exc)


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""
    logger.error(f"Unhandled exception: {exc}", exc_info=exc)
    return _internal_error(exc)


def register_exception_handlers(app):
    """Register all exception handlers on the given FastAPI app."""
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
