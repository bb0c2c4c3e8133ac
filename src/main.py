"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Can create multiple app instances if needed (e.g., for testing)

For local development:
    uvicorn src.main:app --reload

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.dependencies import build_generation_client, build_key_value_store
from .api.routes import coaching, health, profile, runs
from .config.settings import get_settings

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the long-lived handles on startup and releases them on
    shutdown:
    - key-value store (Redis connects on first use)
    - Anthropic client (holds an HTTP connection pool)

    Routes reach both through app.state via the dependencies module.
    """
    # Startup
    settings = get_settings()

    logger.info(
        "Coaching API starting",
        extra={
            "version": settings.api_version,
            "mock_mode": {"redis": settings.redis_mock_mode},
        }
    )

    # Validate configuration
    missing_fields = settings.validate_required_fields()
    if missing_fields:
        # Not fatal: coaching degrades to fallback messages
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    app.state.kv_store = build_key_value_store(settings)
    app.state.generation_client = build_generation_client(settings)

    yield

    # Shutdown
    await app.state.generation_client.close()
    await app.state.kv_store.close()
    logger.info("Coaching API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    This function is called once at startup (in production) or
    multiple times (in tests with different configurations).
    """
    settings = get_settings()

    # Create FastAPI instance
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Real-time AI coaching for runners.

        ## Workflow

        1. **Set a goal** (optional): `POST /api/profile`
           - Stores the runner's training goal and clears cached messages

        2. **Coach during the run**: `POST /api/coaching`
           - Send current telemetry every few seconds
           - Messages are reused while the runner is in the same
             pace/heart-rate/distance bucket for under a minute and 200 m

        3. **Log the run**: `POST /api/runs`
           - Stores the finished run for history
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    # The mobile app doesn't need CORS; this is for browser-based tools.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_origins_list != ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/api/health",
        tags=["Health"],
    )

    app.include_router(
        coaching.router,
        prefix="/api/coaching",
        tags=["Coaching"],
    )

    app.include_router(
        profile.router,
        prefix="/api/profile",
        tags=["Profile"],
    )

    app.include_router(
        runs.router,
        prefix="/api/runs",
        tags=["Runs"],
    )

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - points at docs."""
        return {
            "message": "JogGPS Coaching API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/api/health",
        }

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Malformed bodies get a 400 rather than FastAPI's default 422.

        The Android client treats 400 as "fix your request" and 5xx as
        "try again later".
        """
        logger.warning(
            "Rejected malformed request",
            extra={"path": request.url.path, "errors": len(exc.errors())},
        )
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        In production, this prevents stack traces from leaking to clients.
        We log the full error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    # Get settings to determine log level
    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
