"""Global exception handlers for FastAPI."""

import sentry_sdk
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from posledger.core.errors import AppError, ErrorDetail
from posledger.core.logging import get_logger

logger = get_logger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Handle all AppError exceptions and convert to JSON response.

    Returns standardized error format:
    {
        "code": "ALREADY_SETTLED",
        "message": "Receivable xyz is already paid in full",
        "details": {"resource": "Receivable", "resource_id": "xyz"}
    }
    """
    if exc.status_code >= 500:
        logger.error("app_error", code=exc.code, path=request.url.path)
    else:
        logger.info("domain_error", code=exc.code, path=request.url.path, details=exc.details)

    error_response = exc.to_response()
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(exclude_none=True),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render pydantic body/query failures in the shared error format."""
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    body = ErrorDetail(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        details={"errors": errors},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(exclude_none=True),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log, report, and answer with a generic body."""
    logger.error(
        "unhandled_exception",
        error=type(exc).__name__,
        path=request.url.path,
        exc_info=exc,
    )
    sentry_sdk.capture_exception(exc)
    body = ErrorDetail(code="INTERNAL_ERROR", message="Internal error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(exclude_none=True),
    )


def register_exception_handlers(app) -> None:
    """Register all custom exception handlers with FastAPI app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
