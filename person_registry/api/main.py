"""
Main FastAPI application for the Person Registry service.

Startup creates the database schema and runs the best-effort ingestion of the
configured source before the first request is served.
"""
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from person_registry import __version__
from person_registry.api.endpoints import router
from person_registry.config.logging_config import configure_logging
from person_registry.config.settings import (
    ApplicationSettings,
    get_settings,
    validate_settings,
)
from person_registry.models.database import build_engine, create_tables
from person_registry.models.domain import ErrorResponse
from person_registry.models.exceptions import (
    BadRequestError,
    NotFoundError,
    PersonRegistryError,
)
from person_registry.repositories.base import DatabaseSession, RepositoryError
from person_registry.repositories.person_repository import PersonRepository
from person_registry.services.data_loader import DataLoader
from person_registry.services.record_parser import CsvRecordParser

logger = structlog.get_logger(__name__)


def error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    """Error body shared by every handler"""
    body = ErrorResponse(message=message, details=f"uri={request.url.path}")
    return JSONResponse(status_code=status_code, content=body.model_dump())


def status_for_error(exc: PersonRegistryError) -> int:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, BadRequestError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Initializes the database and loads the ingestion source on startup,
    disposes of the engine on shutdown.
    """
    settings: ApplicationSettings = app.state.settings
    logger.info(
        "Starting Person Registry service",
        environment=settings.environment,
        version=settings.app_version,
    )

    try:
        for warning in validate_settings(settings):
            logger.warning("Configuration warning", warning=warning)

        engine = build_engine(settings.database)
        await create_tables(engine)

        app.state.db_engine = engine
        app.state.session_maker = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error("Application startup failed", error=str(e))
        raise

    if settings.ingestion.enabled:
        reader = CsvRecordParser.from_settings(settings.ingestion)
        await DataLoader(reader, app.state.session_maker).load_data()
    else:
        logger.info("Startup ingestion disabled")

    try:
        yield
    finally:
        logger.info("Shutting down Person Registry service")
        await engine.dispose()
        logger.info("Service shut down gracefully")


def create_app(settings: Optional[ApplicationSettings] = None) -> FastAPI:
    """Build the FastAPI application for the given (or environment) settings"""
    settings = settings or get_settings()
    configure_logging(settings.monitoring)

    app = FastAPI(
        title="Person Registry API",
        description="Person records ingested from a delimited source, filterable by color",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
    )
    app.state.settings = settings

    # Middleware
    if settings.security.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.security.cors_origins,
            allow_credentials=settings.security.cors_allow_credentials,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    if settings.monitoring.performance_tracking_enabled:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            """Log every request with its processing time"""
            start_time = time.time()

            response = await call_next(request)

            process_time = time.time() - start_time
            logger.info(
                "Request processed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                process_time_ms=round(process_time * 1000, 2),
            )
            response.headers["X-Process-Time"] = str(process_time)

            return response

    # Exception handlers
    @app.exception_handler(PersonRegistryError)
    async def registry_exception_handler(request: Request, exc: PersonRegistryError):
        status_code = status_for_error(exc)
        logger.warning(
            "Request failed",
            path=request.url.path,
            status_code=status_code,
            **exc.to_dict(),
        )
        return error_response(request, status_code, exc.message)

    @app.exception_handler(RepositoryError)
    async def repository_exception_handler(request: Request, exc: RepositoryError):
        logger.error("Database error", path=request.url.path, error=str(exc))
        return error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error"
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Malformed request bodies are client errors"""
        errors = exc.errors()
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()))
            message = f"Invalid request: {location} {errors[0].get('msg', '')}".strip()
        else:
            message = "Invalid request"
        return error_response(request, status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Unexpected errors, details stay in the log"""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
        )

    # Routes
    app.include_router(router)

    @app.get("/")
    async def root() -> Dict[str, Any]:
        """Service information"""
        return {
            "service": settings.app_name,
            "version": __version__,
            "status": "operational",
            "environment": settings.environment,
            "health": "/health",
            "persons": "/persons",
        }

    @app.get("/health")
    async def health_check(request: Request) -> Dict[str, Any]:
        """Database probe plus the number of stored persons"""
        try:
            async with DatabaseSession(request.app.state.session_maker()) as session:
                person_count = await PersonRepository(session).count()
            db_status = "healthy"
        except Exception as e:
            logger.warning("Database health check failed", error=str(e))
            person_count = None
            db_status = "unhealthy"

        return {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": __version__,
            "environment": settings.environment,
            "components": {"database": db_status},
            "persons": person_count,
        }

    # Prometheus metrics (if enabled)
    if settings.monitoring.prometheus_enabled:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    return app


app = create_app()


def main() -> None:
    """Run the application with uvicorn"""
    settings = get_settings()
    uvicorn.run(
        "person_registry.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development() and settings.debug_mode,
        log_level=settings.monitoring.log_level.lower(),
    )


if __name__ == "__main__":
    main()
