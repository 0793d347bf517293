"""
Neo4j Product Data Source

Serves (:Product) nodes from a Neo4j graph. All Cypher comes from
CatalogQueryBuilder; this class only executes it and maps records and driver
errors onto the catalog model.
"""

import logging
from typing import Any, Dict, List

from neo4j import AsyncDriver
from neo4j.exceptions import DriverError, Neo4jError
from pydantic import ValidationError

from catalog_service.exceptions import DataSourceUnavailable, RemoteQueryFailed
from catalog_service.models.filters import FilterRequestPayload
from catalog_service.models.product import Product, QueryResponse
from .base import ProductDataSource
from .query_builder import CatalogQueryBuilder

logger = logging.getLogger(__name__)

_DRIVER_ERRORS = (Neo4jError, DriverError, OSError)


def _record_to_product(record: Dict[str, Any]) -> Product:
    # Missing node properties come back as null; let model defaults apply
    return Product.model_validate({k: v for k, v in record.items() if v is not None})


class Neo4jProductDataSource(ProductDataSource):
    """
    Data source over a Neo4j graph.

    Args:
        driver: AsyncDriver, usually from Neo4jManager
        label: Node label holding products
    """

    source_type = "neo4j"

    def __init__(self, driver: AsyncDriver, label: str = "Product"):
        self.driver = driver
        self.query_builder = CatalogQueryBuilder(label=label)

    async def _run(self, query: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        async with self.driver.session() as session:
            result = await session.run(query, params)
            return await result.data()

    async def fetch_all(self) -> List[Product]:
        query, params = self.query_builder.build_fetch_all_query()
        try:
            records = await self._run(query, params)
            products = [_record_to_product(r) for r in records]
        except (*_DRIVER_ERRORS, ValidationError) as e:
            logger.error(f"Neo4j catalog fetch failed: {e}")
            raise DataSourceUnavailable(f"Neo4j catalog fetch failed: {e}", cause=e) from e

        logger.info(f"Fetched {len(products)} products from Neo4j")
        return products

    async def count(self) -> int:
        query, params = self.query_builder.build_count_query()
        try:
            records = await self._run(query, params)
        except _DRIVER_ERRORS as e:
            logger.error(f"Neo4j count failed: {e}")
            raise DataSourceUnavailable(f"Neo4j count failed: {e}", cause=e) from e

        return int(records[0]["total"]) if records else 0

    async def query(self, payload: FilterRequestPayload) -> QueryResponse:
        count_query, count_params = self.query_builder.build_count_query(payload)
        page_query, page_params = self.query_builder.build_page_query(payload)
        logger.debug(f"Neo4j page query:\n{page_query}\nparams={page_params}")

        try:
            count_records = await self._run(count_query, count_params)
            records = await self._run(page_query, page_params)
            products = [_record_to_product(r) for r in records]
        except (*_DRIVER_ERRORS, ValidationError) as e:
            logger.error(f"Neo4j filter query failed: {e}")
            raise RemoteQueryFailed(f"Neo4j filter query failed: {e}", cause=e) from e

        total = int(count_records[0]["total"]) if count_records else 0
        return QueryResponse(products=products, total_items=total)
