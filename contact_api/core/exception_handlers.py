"""Global exception handlers for consistent error responses.

Design:
- ValidationAppError → 400 (client fault)
- RateLimitAppError → 429 with throttling headers
- MailRelayAppError → 500 (downstream delivery fault, opaque to the client)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for log correlation
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse

from contact_api.core.errors import AppError, MailRelayAppError, RateLimitAppError
from contact_api.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    # The unexpected-error handler runs outside request_id_middleware, after
    # the context variable has been cleared
    return get_request_id() or getattr(request.state, "request_id", None)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For log correlation
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = 400  # Default: client error
    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitAppError):
        status_code = 429
        headers = exc.headers or None
    elif isinstance(exc, MailRelayAppError):
        status_code = 500

    request_id = _request_id(request)
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": request_id,
        }
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": request_id,
    }

    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    request_id = _request_id(request)
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": request_id,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": request_id,
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Order matters: specific handlers registered before general fallback.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
