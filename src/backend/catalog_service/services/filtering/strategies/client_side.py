"""
In-Memory Filtering Strategy

Materializes the whole catalog once per activation and answers every query
locally: AND across filters, then the search predicate, then the page slice.
Used when the catalog is at or below the strategy threshold.
"""

import asyncio
import logging
from enum import Enum
from typing import List

from catalog_service.exceptions import CatalogError, DataSourceUnavailable
from catalog_service.models.filters import QueryState
from catalog_service.models.product import PageResult, Product, resolve_field_name
from catalog_service.services.datasource.base import ProductDataSource
from catalog_service.utils.logging_context import log_performance
from ..pagination import compute_slice, validate_page_request
from ..predicates import matches_all, matches_search
from .base import FilteringStrategy

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"


class InMemoryFilteringStrategy(FilteringStrategy):
    """
    Client-side filtering over a fully loaded working set.

    ``load()`` may be called any number of times; each call replaces the
    working set. Loads are serialized so only one fetch is in flight, and a
    failed load leaves the previous state untouched.
    """

    kind = "in_memory"

    def __init__(self, data_source: ProductDataSource, default_page_size: int = 10):
        super().__init__(data_source, default_page_size)
        self._products: List[Product] = []
        self._state = EngineState.EMPTY
        self._load_lock = asyncio.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state == EngineState.LOADED

    @property
    def loaded_count(self) -> int:
        """Size of the working set held in memory"""
        return len(self._products)

    async def load(self) -> List[Product]:
        """
        Fetch the entire catalog and make it the working set.

        Returns:
            The loaded products, in data source order

        Raises:
            DataSourceUnavailable: fetch failed; engine state is unchanged
        """
        return await self._load(force=True)

    async def ensure_loaded(self) -> None:
        """Load only if nothing has been loaded yet"""
        if self._state == EngineState.EMPTY:
            await self._load(force=False)

    async def _load(self, force: bool) -> List[Product]:
        async with self._load_lock:
            # Another caller may have finished loading while we waited
            if not force and self._state == EngineState.LOADED:
                return list(self._products)

            with log_performance("catalog_load", source=self.data_source.get_name()):
                try:
                    products = await self.data_source.fetch_all()
                except CatalogError:
                    raise
                except Exception as e:
                    logger.error(f"Catalog fetch failed: {e}", exc_info=True)
                    raise DataSourceUnavailable(f"Catalog fetch failed: {e}", cause=e) from e

            self._products = list(products)
            self._state = EngineState.LOADED
            logger.info(f"In-memory working set loaded: {len(self._products)} products")
            return list(self._products)

    def filter_products(self, state: QueryState) -> List[Product]:
        """Working set after filters and search, before pagination"""
        return [
            p for p in self._products
            if matches_all(p, state.filters) and matches_search(p, state.search_term)
        ]

    async def apply_and_paginate(self, state: QueryState) -> PageResult:
        validate_page_request(state.page_number, state.page_size)
        await self.ensure_loaded()

        filtered = self.filter_products(state)
        start, end = compute_slice(state.page_number, state.page_size, len(filtered))

        logger.debug(
            f"In-memory query '{state.search_term}' with {len(state.filters)} filters: "
            f"{len(filtered)}/{len(self._products)} match, page {state.page_number} -> [{start}:{end}]"
        )
        return PageResult(items=filtered[start:end], total_items=len(filtered))

    async def get_products(self) -> List[Product]:
        await self.ensure_loaded()
        return list(self._products)

    async def get_products_count(self) -> int:
        try:
            return await self.data_source.count()
        except CatalogError:
            raise
        except Exception as e:
            raise DataSourceUnavailable(f"Catalog count failed: {e}", cause=e) from e

    def available_options(self, field_key: str) -> List[str]:
        """
        Distinct values of ``field_key`` across the working set.

        Used to build multiselect options (e.g. the category list). Order
        follows first appearance; unknown keys yield [].
        """
        attr = resolve_field_name(field_key)
        if attr is None:
            return []
        seen = {}
        for product in self._products:
            raw = getattr(product, attr)
            if raw is not None:
                seen.setdefault(str(raw), None)
        return list(seen)
