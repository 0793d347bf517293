"""
Neo4j connection management for the catalog graph.

One AsyncDriver per process, owned by ``Neo4jManager``; the Neo4j data
source borrows it and never closes it.
"""

import asyncio
import logging
from typing import Optional

from neo4j import AsyncDriver, AsyncGraphDatabase
from neo4j.exceptions import ServiceUnavailable, SessionExpired

from catalog_service.exceptions import DataSourceUnavailable

logger = logging.getLogger(__name__)


class Neo4jManager:
    """
    Neo4j driver manager with centralized connection pooling.

    Features:
    - Single driver instance (singleton pattern)
    - Connectivity check on init and on every get_driver()
    - Reconnection with exponential backoff on lost connections
    """

    def __init__(
        self,
        max_connection_lifetime: int = 3600,
        max_connection_pool_size: int = 50,
        connection_acquisition_timeout: float = 60,
        max_reconnect_attempts: int = 3,
    ):
        self.uri: Optional[str] = None
        self.username: Optional[str] = None
        self.password: Optional[str] = None
        self.driver: Optional[AsyncDriver] = None
        self._initialized = False
        self._reconnect_attempts = 0
        self._max_reconnect_attempts = max_reconnect_attempts

        self._max_connection_lifetime = max_connection_lifetime
        self._max_connection_pool_size = max_connection_pool_size
        self._connection_acquisition_timeout = connection_acquisition_timeout

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def init_neo4j(self, uri: str, username: str, password: str):
        """
        Initialize Neo4j driver with connection pooling.

        Args:
            uri: Neo4j connection URI (bolt:// or neo4j://)
            username: Neo4j username
            password: Neo4j password

        Raises:
            DataSourceUnavailable: driver could not connect
        """
        if self._initialized:
            logger.info("Neo4j already initialized")
            return

        self.uri = uri
        self.username = username
        self.password = password

        driver_config = {
            "auth": (username, password),
            "max_connection_lifetime": self._max_connection_lifetime,
            "max_connection_pool_size": self._max_connection_pool_size,
            "connection_acquisition_timeout": self._connection_acquisition_timeout,
        }
        # encrypted may only be passed for the plain schemes; +s/+ssc imply it
        if uri.startswith("bolt://") or uri.startswith("neo4j://"):
            driver_config["encrypted"] = False

        try:
            self.driver = AsyncGraphDatabase.driver(uri, **driver_config)
            await self._verify_connectivity()
        except Exception as e:
            logger.error(f"Failed to initialize Neo4j driver: {e}")
            await self._discard_driver()
            raise DataSourceUnavailable(f"Neo4j unavailable at {uri}", cause=e) from e

        self._initialized = True
        self._reconnect_attempts = 0
        logger.info(
            f"Neo4j driver initialized - URI: {uri}, pool max_size={self._max_connection_pool_size}, "
            f"max_lifetime={self._max_connection_lifetime}s"
        )

    async def _verify_connectivity(self):
        if not self.driver:
            raise ValueError("Driver not initialized")

        async with self.driver.session() as session:
            result = await session.run("RETURN 1 AS test")
            record = await result.single()
            if record is None or record["test"] != 1:
                raise ServiceUnavailable("Neo4j connectivity check returned no result")

        logger.debug("Neo4j connectivity verified")

    async def get_driver(self) -> AsyncDriver:
        """
        Get Neo4j driver instance with automatic reconnection.

        Raises:
            DataSourceUnavailable: driver not initialized or reconnection failed
        """
        if not self._initialized or not self.driver:
            raise DataSourceUnavailable("Neo4j driver not initialized. Call init_neo4j() first.")

        try:
            await self._verify_connectivity()
            self._reconnect_attempts = 0
            return self.driver
        except (ServiceUnavailable, SessionExpired) as e:
            logger.warning(f"Neo4j connection lost: {e}")
            if self._reconnect_attempts >= self._max_reconnect_attempts:
                logger.error(f"Max reconnection attempts ({self._max_reconnect_attempts}) exceeded")
                raise DataSourceUnavailable("Neo4j connection lost and reconnection failed", cause=e) from e

        await self._reconnect()
        return self.driver

    async def _reconnect(self):
        self._reconnect_attempts += 1
        delay = min(2 ** self._reconnect_attempts, 30)
        logger.info(
            f"Reconnecting to Neo4j in {delay}s "
            f"({self._reconnect_attempts}/{self._max_reconnect_attempts})"
        )
        await asyncio.sleep(delay)

        await self._discard_driver()
        self._initialized = False
        await self.init_neo4j(self.uri, self.username, self.password)
        logger.info("Neo4j reconnection successful")

    async def _discard_driver(self):
        if self.driver:
            try:
                await self.driver.close()
            except Exception as e:
                logger.warning(f"Error closing Neo4j driver: {e}")
        self.driver = None

    async def close(self):
        """Close Neo4j driver and cleanup resources."""
        if self.driver:
            await self._discard_driver()
            logger.info("Neo4j driver closed")
        self._initialized = False
        self._reconnect_attempts = 0


neo4j_manager = Neo4jManager()


async def init_neo4j(uri: str, username: str, password: str):
    """Initialize Neo4j connection manager."""
    await neo4j_manager.init_neo4j(uri, username, password)


async def get_neo4j_driver() -> AsyncDriver:
    """
    Dependency for getting Neo4j driver.

    Raises:
        DataSourceUnavailable if driver not initialized
    """
    return await neo4j_manager.get_driver()


async def close_neo4j():
    """Close Neo4j connections."""
    await neo4j_manager.close()
