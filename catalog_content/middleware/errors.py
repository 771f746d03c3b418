"""Error handling middleware."""

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_CONTENT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)
from starlette.types import ASGIApp

from catalog_content.core.logging import get_request_logger

# Map exception types to status codes (None means use exception's status_code)
ErrorMapping = dict[type[Exception], int | None]

DEFAULT_ERROR_MAPPING: ErrorMapping = {
    KeyError: HTTP_404_NOT_FOUND,
    ValueError: HTTP_422_UNPROCESSABLE_CONTENT,
    RequestValidationError: HTTP_422_UNPROCESSABLE_CONTENT,
    HTTPException: None,  # Use its own status_code
    StarletteHTTPException: None,
}


def resolve_status_code(exc: Exception, mapping: ErrorMapping) -> int:
    """Pick the response status for an exception.

    Exact type matches in ``mapping`` win; otherwise an exception's own
    ``status_code`` attribute is used, falling back to 500.
    """
    mapped_status = mapping.get(type(exc))
    if mapped_status is not None:
        return mapped_status
    if isinstance(exc, StarletteHTTPException):
        return exc.status_code
    status_code = getattr(exc, "status_code", HTTP_500_INTERNAL_SERVER_ERROR)
    return status_code if isinstance(status_code, int) else HTTP_500_INTERNAL_SERVER_ERROR


def error_detail(exc: Exception) -> str:
    if isinstance(exc, StarletteHTTPException):
        return str(exc.detail)
    if isinstance(exc, RequestValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
            for error in exc.errors()
        )
    if isinstance(exc, KeyError):
        return f"'{exc.args[0]}'" if exc.args else str(exc)
    return str(exc.args[0] if exc.args else str(exc))


def build_error_response(
    request: Request, exc: Exception, mapping: ErrorMapping = DEFAULT_ERROR_MAPPING
) -> JSONResponse:
    """Log an exception and render the JSON error envelope."""
    error_type = exc.__class__.__name__
    status_code = resolve_status_code(exc, mapping)
    detail = error_detail(exc)
    correlation_id = getattr(request.state, "correlation_id", None)

    logger = get_request_logger(correlation_id)
    log = logger.error if status_code >= HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
    log(
        "request_error",
        error_type=error_type,
        error_message=detail,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
    )

    response = JSONResponse(
        status_code=status_code,
        content={
            "error": error_type,
            "message": detail,
            "status_code": status_code,
            "correlation_id": correlation_id if correlation_id else "unknown",
        },
        media_type="application/json",
    )
    if correlation_id:
        response.headers["X-Request-ID"] = correlation_id
    return response


async def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    return build_error_response(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Render HTTP and validation errors raised inside routes as the envelope."""
    app.add_exception_handler(StarletteHTTPException, handle_exception)
    app.add_exception_handler(RequestValidationError, handle_exception)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware to turn unhandled exceptions into consistent error responses."""

    def __init__(self, app: ASGIApp, error_mapping: ErrorMapping | None = None) -> None:
        """
        Initialize middleware with error mappings.

        Args:
        ----
            app: The ASGI application
            error_mapping: Overrides for the default exception to status mapping
        """
        super().__init__(app)
        self.error_mapping: ErrorMapping = {
            **DEFAULT_ERROR_MAPPING,
            **(error_mapping or {}),
        }

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle and handle errors.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers or error response
        """
        try:
            return await call_next(request)
        except Exception as exc:
            return build_error_response(request, exc, self.error_mapping)
