"""
Catalog Filtering Service
FastAPI Application Entry Point
"""

import asyncio
import logging
import logging.handlers
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .api.v1.catalog import router as catalog_router, get_browse_sessions_dep, get_filtering_service_dep
from .api.v1.health import router as health_router
from .database.database import close_neo4j
from .exceptions import ConfigurationError, DataSourceUnavailable
from .middleware import BrowseSessionContextMiddleware, LoggingMiddleware
from .services.config.config_validator import validate_configs_on_startup
from .services.config.configuration_service import get_config_service
from .services.datasource.base import ProductDataSource
from .services.datasource.factory import create_data_source
from .services.filtering.filtering_service import FilteringService
from .services.filtering.session import BrowseSessionRegistry

# Load environment variables
load_dotenv()


def configure_logging():
    """
    Configure structured logging using structlog.

    - Production (ENV=production): JSON output for log aggregation
    - Development (ENV=development): Human-readable console output
    - Includes automatic context: timestamp, level, logger name, correlation_id
    """
    env = os.getenv("ENV", "development").lower()
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    timestamper = structlog.processors.TimeStamper(fmt="iso")

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.contextvars.merge_contextvars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        timestamper,
    ]

    if env == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback
        )

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    # Default log path at project root (src/backend/catalog_service/main.py -> 4 levels up)
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    default_log_path = project_root / "logs" / "catalog-service.log"
    log_file_path = str(Path(os.getenv("LOG_FILE_PATH", str(default_log_path))).resolve())
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file_path,
        maxBytes=10 * 1024 * 1024,  # 10MB per file
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(file_handler)
    root_logger.setLevel(log_level)

    # Reduce noise from verbose libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("neo4j").setLevel(logging.WARNING)

    return structlog.get_logger(__name__)


# Initialize structured logging
logger = configure_logging()

# Global instances
data_source: Optional[ProductDataSource] = None
filtering_service: Optional[FilteringService] = None
browse_sessions: Optional[BrowseSessionRegistry] = None
config_report: Optional[dict] = None

# Serializes catalog start-up between the lifespan and request-time retries
_catalog_start_lock = asyncio.Lock()


async def start_catalog() -> bool:
    """
    Connect the data source and build the filtering service.

    Called from the lifespan and again on demand while the data source is
    unreachable. An initial strategy selection failure leaves the service
    up; POST /api/v1/catalog/strategy/switch retries it.

    Returns:
        True if the filtering service is available
    """
    global data_source, filtering_service, browse_sessions

    config_service = get_config_service()
    try:
        data_source = await create_data_source(config_service)
    except DataSourceUnavailable as e:
        logger.error(f"Data source unavailable: {e.message}. Catalog endpoints return 503 until it is reachable.")
        data_source = None
        return False

    service = FilteringService.from_data_source(
        data_source,
        threshold=config_service.get_strategy_threshold(),
        default_page_size=config_service.get_default_page_size(),
    )
    filtering_service = service
    browse_sessions = BrowseSessionRegistry(
        service,
        default_page_size=config_service.get_default_page_size(),
    )
    try:
        count = await service.evaluate_and_select()
        logger.info(f"✓ Catalog ready: {count} products, strategy={service.active_kind.value}")
    except DataSourceUnavailable as e:
        logger.warning(f"Initial strategy selection failed: {e.message}. Retry via /api/v1/catalog/strategy/switch")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown"""
    global data_source, filtering_service, browse_sessions, config_report

    logger.info("Starting catalog filtering service...")

    config_service = get_config_service()
    is_valid, config_report = validate_configs_on_startup(config_service.config_dir)
    if not is_valid:
        raise ConfigurationError(
            f"Catalog configuration is invalid ({config_report['total_errors']} errors)"
        )

    async with _catalog_start_lock:
        await start_catalog()

    yield

    logger.info("Shutting down catalog filtering service...")
    if data_source is not None:
        try:
            await data_source.close()
        except Exception as e:
            logger.error(f"Error closing data source: {e}")
    try:
        await close_neo4j()
    except Exception as e:
        logger.error(f"Error closing Neo4j: {e}")

    filtering_service = None
    browse_sessions = None
    data_source = None
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Catalog Filtering Service",
    description="Filterable, searchable, paginated product catalog with in-memory and remote filtering",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware is executed in reverse order of addition,
# so BrowseSessionContextMiddleware runs inside LoggingMiddleware
app.add_middleware(BrowseSessionContextMiddleware)
app.add_middleware(LoggingMiddleware)


async def get_filtering_service() -> FilteringService:
    """
    Get filtering service instance for dependency injection

    While the data source has never been reached, each request retries
    the start-up before answering 503.
    """
    if filtering_service is None:
        async with _catalog_start_lock:
            if filtering_service is None:
                logger.info("Filtering service not started - retrying data source connection")
                await start_catalog()
    if filtering_service is None:
        raise HTTPException(status_code=503, detail="Catalog data source is not available")
    return filtering_service


async def get_browse_sessions() -> BrowseSessionRegistry:
    """Get browse session registry for dependency injection"""
    await get_filtering_service()
    return browse_sessions


app.include_router(catalog_router)
app.include_router(health_router)

# Override dependencies in app (not router)
app.dependency_overrides[get_filtering_service_dep] = get_filtering_service
app.dependency_overrides[get_browse_sessions_dep] = get_browse_sessions


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Catalog Filtering Service",
        "version": "1.0.0",
        "endpoints": {
            "search": "/api/v1/catalog/products/search",
            "strategy": "/api/v1/catalog/strategy",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    config_service = get_config_service()

    health_status = {
        "status": "healthy",
        "data_source": {
            "type": config_service.get_data_source_config()["type"],
            "available": data_source is not None,
        },
        "filtering": filtering_service.describe() if filtering_service else None,
        "config": {
            "valid": config_report["overall_valid"] if config_report else None,
            "errors": config_report["total_errors"] if config_report else None,
            "warnings": config_report["total_warnings"] if config_report else None,
        },
    }

    if filtering_service is None:
        health_status["status"] = "unhealthy"

    return health_status


def main():
    import uvicorn

    uvicorn.run(
        "catalog_service.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENV", "development").lower() != "production",
        log_level="info"
    )


if __name__ == "__main__":
    main()
