"""Main FastAPI application module."""

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette import status

from catalog_content.api.v1.router import router as v1_router
from catalog_content.core.config import Settings
from catalog_content.core.events import lifespan
from catalog_content.middleware.correlation import CorrelationMiddleware
from catalog_content.middleware.errors import (
    ErrorHandlingMiddleware,
    register_exception_handlers,
)
from catalog_content.middleware.metrics import MetricsMiddleware
from catalog_content.middleware.security import SecurityHeadersMiddleware


def create_app(settings: Settings | None = None, with_events: bool = True) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use, read from the environment when omitted
        with_events: Run the startup and shutdown handlers in the app lifespan
    """
    settings = settings or Settings()

    app = FastAPI(
        title=settings.app_name,
        description="Shopify product content editor with layout status tracking",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=JSONResponse,
        redirect_slashes=True,
        lifespan=lifespan if with_events else None,
    )

    # Add middleware in order (inside -> out):
    # 1. CORS (outermost)
    # 2. Security headers
    # 3. Correlation (adds request ID)
    # 4. Metrics (tracks all requests)
    # 5. Error handling (innermost - handles all errors)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )
    register_exception_handlers(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", include_in_schema=False)
    async def root_redirect() -> Response:
        """Redirect root path to docs."""
        return RedirectResponse(url="/docs", status_code=status.HTTP_307_TEMPORARY_REDIRECT)

    app.include_router(v1_router, prefix=settings.api_prefix)
    return app


app = create_app()
