"""Exception handlers that normalize errors into ``{"error": {kind, message}}``."""
import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import WaitlistError

logger = logging.getLogger(__name__)


async def waitlist_error_handler(request: Request, exc: WaitlistError) -> JSONResponse:
    logger.warning(
        f"[API] {exc.kind} on {request.url.path}: {exc.message}"
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"[API] invalid-argument on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": {"kind": "invalid-argument", "message": "Invalid request arguments."}},
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"[API] Unhandled error on {request.url.path} - "
        f"Error: {type(exc).__name__}: {str(exc)}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": {"kind": "internal", "message": "An internal error occurred."}},
    )
