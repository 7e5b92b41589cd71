from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from projecthub.core.config import Settings, settings as default_settings
from projecthub.core.database import Database
from projecthub.core.exceptions import ProjectHubError, InternalError, ValidationError, error_response
from projecthub.core.logging_config import logger
from projecthub.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from projecthub.core.rate_limiter import configure_limiter, rate_limit_exceeded_handler
from projecthub.core.security import TokenService
from projecthub.api.router import api_router
from projecthub.services.change_notifier import ChangeNotifier, WebSocketNotifier

VERSION = "1.0.0"


def validate_critical_config(app_settings: Settings) -> bool:
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not app_settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if not app_settings.JWT_SECRET_KEY or app_settings.JWT_SECRET_KEY == "CHANGE_ME":
        if app_settings.ENVIRONMENT == "production":
            errors.append("JWT_SECRET_KEY is not set or using default value")
        else:
            warnings.append("JWT_SECRET_KEY is using the default value - do not use in production")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] ✓ Critical configuration validated")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    app_settings: Settings = app.state.settings

    logger.info("=" * 60)
    logger.info(f"Starting {app_settings.APP_NAME}...")
    logger.info(f"Environment: {app_settings.ENVIRONMENT}")
    logger.info("=" * 60)

    validate_critical_config(app_settings)

    await app.state.database.create_all()
    logger.info("[Startup] Database tables ready")

    yield

    logger.info(f"Shutting down {app_settings.APP_NAME}...")
    notifier = app.state.notifier
    if isinstance(notifier, WebSocketNotifier):
        await notifier.wait_pending()
    await app.state.database.dispose()


def register_exception_handlers(app: FastAPI) -> None:
    """Convert every failure into a JSON error body"""

    @app.exception_handler(ProjectHubError)
    async def projecthub_error_handler(request: Request, exc: ProjectHubError):
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc),
            headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        error = ValidationError("Invalid or missing fields", details={"errors": fields})
        return JSONResponse(status_code=error.status_code, content=error_response(error))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=error_response(InternalError()))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global exception: {exc}", exc_info=True)
        message = str(exc) if app.state.settings.DEBUG else "An error occurred"
        return JSONResponse(status_code=500, content=error_response(InternalError(message)))


def create_app(
    app_settings: Settings = default_settings,
    notifier: Optional[ChangeNotifier] = None,
) -> FastAPI:
    """Build the application and its collaborators from explicit settings"""
    app = FastAPI(
        title=app_settings.APP_NAME,
        description="Project tracking API: accounts, sessions and personal project lists",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        redirect_slashes=False  # Prevent 307 redirects that break CORS
    )

    app.state.settings = app_settings
    app.state.database = Database(app_settings.DATABASE_URL, echo=app_settings.DB_ECHO)
    app.state.token_service = TokenService(
        secret_key=app_settings.JWT_SECRET_KEY,
        algorithm=app_settings.JWT_ALGORITHM,
        ttl=timedelta(minutes=app_settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    app.state.notifier = notifier if notifier is not None else WebSocketNotifier()

    # Rate limiter state and exception handler
    app.state.limiter = configure_limiter(app_settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    register_exception_handlers(app)

    # Add middleware (order matters - last added runs first)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_size=app_settings.MAX_REQUEST_SIZE_MB * 1024 * 1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "app_name": app_settings.APP_NAME,
            "version": VERSION,
            "environment": app_settings.ENVIRONMENT
        }

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {app_settings.APP_NAME}",
            "version": VERSION,
            "docs": "/docs",
            "health": "/health"
        }

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


def run():
    """Console entry point: serve the app with uvicorn"""
    import uvicorn
    uvicorn.run(
        "projecthub.main:app",
        host=default_settings.SERVER_HOST,
        port=default_settings.SERVER_PORT,
        reload=default_settings.DEBUG
    )


if __name__ == "__main__":
    run()
