import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from finboard import __version__
from finboard.api.middleware.error_handler import (
    handle_finance_error,
    handle_generic_error,
    handle_validation_error,
)
from finboard.api.middleware.logging import RequestLoggingMiddleware
from finboard.api.v1 import router as v1_router
from finboard.api.v1.health import router as health_router
from finboard.config import settings
from finboard.core.exceptions import FinanceError
from finboard.core.logging import setup_logging
from finboard.db.session import create_schema, dispose_engines

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if settings.auto_create_schema:
        await create_schema()
        logger.info("Database schema ready")
    yield
    # Shutdown
    await dispose_engines()


def create_app() -> FastAPI:
    setup_logging(settings.log_level, json_format=settings.log_json)

    app = FastAPI(
        title="Finance Dashboard API",
        description="Bank statement ingestion, deduplication and summaries",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(FinanceError, handle_finance_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_generic_error)

    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()
