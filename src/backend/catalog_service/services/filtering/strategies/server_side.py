"""
Remote Filtering Strategy

Serializes the QueryState into a FilterRequestPayload and lets the data
source filter, search and paginate. The engine never re-filters what comes
back; it only checks that the response is well formed.
"""

import logging
from typing import List

from catalog_service.exceptions import CatalogError, DataSourceUnavailable, RemoteQueryFailed
from catalog_service.models.filters import QueryState
from catalog_service.models.product import PageResult, Product
from catalog_service.services.datasource.base import ProductDataSource
from catalog_service.utils.logging_context import log_performance
from ..pagination import validate_page_request
from ..payload import build_query_payload
from .base import FilteringStrategy

logger = logging.getLogger(__name__)


class RemoteFilteringStrategy(FilteringStrategy):
    """
    Server-side filtering for catalogs above the strategy threshold.

    The full catalog is never materialized; ``get_products()`` returns the
    last page fetched from the data source.
    """

    kind = "remote"

    def __init__(self, data_source: ProductDataSource, default_page_size: int = 10):
        super().__init__(data_source, default_page_size)
        self._last_page: List[Product] = []

    async def apply_and_paginate(self, state: QueryState) -> PageResult:
        validate_page_request(state.page_number, state.page_size)
        payload = build_query_payload(state)

        with log_performance(
            "remote_query",
            source=self.data_source.get_name(),
            page_number=state.page_number,
            page_size=state.page_size,
        ):
            try:
                response = await self.data_source.query(payload)
            except RemoteQueryFailed:
                raise
            except CatalogError as e:
                raise RemoteQueryFailed(f"Remote query failed: {e.message}", cause=e) from e
            except Exception as e:
                logger.error(f"Remote query failed: {e}", exc_info=True)
                raise RemoteQueryFailed(f"Remote query failed: {e}", cause=e) from e

        if response.total_items < 0:
            raise RemoteQueryFailed(f"Data source reported a negative total ({response.total_items})")
        if len(response.products) > state.page_size:
            raise RemoteQueryFailed(
                f"Data source returned {len(response.products)} items for a page of {state.page_size}"
            )
        if response.total_items < len(response.products):
            raise RemoteQueryFailed(
                f"Data source returned {len(response.products)} items but reported a total of {response.total_items}"
            )

        self._last_page = list(response.products)
        logger.debug(
            f"Remote query returned {len(response.products)} items, total {response.total_items}"
        )
        return PageResult(items=response.products, total_items=response.total_items)

    async def get_products(self) -> List[Product]:
        return list(self._last_page)

    async def get_products_count(self) -> int:
        try:
            return await self.data_source.count()
        except CatalogError:
            raise
        except Exception as e:
            raise DataSourceUnavailable(f"Catalog count failed: {e}", cause=e) from e
