"""
Data Source Factory

Builds the configured ProductDataSource from the catalog configuration.

Usage:
    from catalog_service.services.datasource.factory import create_data_source

    data_source = await create_data_source(get_config_service())
"""

import logging

from catalog_service.database.database import neo4j_manager
from catalog_service.exceptions import ConfigurationError
from catalog_service.services.config.configuration_service import ConfigurationService
from .base import ProductDataSource
from .http_source import HttpProductDataSource
from .neo4j_source import Neo4jProductDataSource
from .static_source import StaticProductDataSource

logger = logging.getLogger(__name__)


async def create_data_source(config_service: ConfigurationService) -> ProductDataSource:
    """
    Create the data source named by ``data_source.type``.

    The Neo4j source connects through the shared Neo4jManager, so a
    connection failure raises DataSourceUnavailable here.

    Raises:
        ConfigurationError: unknown type or missing settings
        DataSourceUnavailable: Neo4j could not be reached
    """
    settings = config_service.get_data_source_config()
    source_type = settings["type"]

    if source_type == "static":
        path = config_service.resolve_static_path(settings.get("static_path"))
        data_source = StaticProductDataSource(path=path)

    elif source_type == "http":
        base_url = settings.get("http_base_url")
        if not base_url:
            raise ConfigurationError("data_source.http_base_url is required for the http data source")
        data_source = HttpProductDataSource(
            base_url=base_url,
            timeout_seconds=settings.get("timeout_seconds", 10),
        )

    elif source_type == "neo4j":
        await neo4j_manager.init_neo4j(
            settings["neo4j_uri"],
            settings["neo4j_username"],
            settings["neo4j_password"],
        )
        data_source = Neo4jProductDataSource(
            driver=neo4j_manager.driver,
            label=settings.get("neo4j_label", "Product"),
        )

    else:
        raise ConfigurationError(f"Unknown data source type '{source_type}'")

    logger.info(f"Created {source_type} data source ({data_source.__class__.__name__})")
    return data_source
