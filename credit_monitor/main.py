"""
Credit Monitor - Main Application Entry Point

Business credit scoring and monitoring engine. Embedding applications
enter lifespan() once per process and use the services it yields.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog

from credit_monitor import __version__
from credit_monitor.core.config import settings
from credit_monitor.core.dependencies import Services, build_services
from credit_monitor.core.logging import setup_logging
from credit_monitor.domain.interfaces import BusinessMetricsProvider
from credit_monitor.infrastructure.database import db_manager


@asynccontextmanager
async def lifespan(
    metrics_provider: BusinessMetricsProvider,
    database_url: str | None = None,
) -> AsyncGenerator[Services, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown:
    - Set up logging
    - Initialize the database connection pool
    - Build the services (scoring tables are validated here)
    - Dispose of the pool on shutdown
    """
    setup_logging()
    db_manager.init(database_url)

    logger = structlog.get_logger(__name__)

    try:
        services = build_services(metrics_provider, db_manager)
        logger.info(
            "application_started",
            app=settings.app_name,
            version=__version__,
        )
        yield services
    finally:
        await db_manager.close()
        logger.info("application_stopped")
