from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from publisphere.config.logging import get_logger, setup_logging
from publisphere.config.settings import settings
from publisphere.infra.database import get_database
from publisphere.v1.core.exceptions import (
    PublisphereException,
    RequestContextMiddleware,
    database_exception_handler,
    general_exception_handler,
    http_exception_handler,
    job_conflict_exception_handler,
    publisphere_exception_handler,
)
from publisphere.v1.healthz import router as health_router
from publisphere.v1.infra.jobs.errors import ConflictError
from publisphere.v1.infra.jobs.routes import router as jobs_router
from publisphere.v1.infra.jobs.runtime import build_job_runtime

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the job runtime on startup and release its clients on shutdown."""
    database = get_database(settings)
    runtime = build_job_runtime(settings, database)
    app.state.job_runtime = runtime
    logger.info("Application started", environment=settings.environment)
    try:
        yield
    finally:
        await runtime.aclose()
        await database.close()
        logger.info("Application stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    # Initialize structured logging
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Durable job queue and poller for scheduled publishing",
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
        # All endpoints live under the /v1 prefix
        openapi_url="/v1/openapi.json" if settings.debug else None,
        docs_url="/v1/docs" if settings.debug else None,
        redoc_url="/v1/redoc" if settings.debug else None,
    )

    # Add middleware
    app.add_middleware(RequestContextMiddleware)

    # Add CORS middleware for development
    if settings.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Add exception handlers
    app.add_exception_handler(PublisphereException, publisphere_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(ConflictError, job_conflict_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers with /v1 prefix
    app.include_router(health_router, prefix="/v1", tags=["health"])
    app.include_router(jobs_router, prefix="/v1")

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "publisphere.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers,
    )
