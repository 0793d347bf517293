"""
Base Filtering Strategy Interface

Defines the abstract interface for the catalog filtering engines. An engine
turns a QueryState into a PageResult; how it gets there (in memory over the
full catalog, or by delegating to the data source) is its own business, but
every engine must return identical results for identical inputs.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from catalog_service.models.filters import FilterInput, QueryState
from catalog_service.models.product import PageResult, Product
from catalog_service.services.datasource.base import ProductDataSource

logger = logging.getLogger(__name__)


class FilteringStrategy(ABC):
    """
    Abstract base class for all filtering strategies.

    - InMemoryFilteringStrategy: fetches the whole catalog once, filters locally
    - RemoteFilteringStrategy: serializes the query, the data source filters

    Besides the stateless ``apply_and_paginate`` every engine tracks a
    "current view" QueryState so the incremental calls (``apply_filters``,
    ``search``, ``paginate``) compose the same way on both engines.
    """

    kind: str = "abstract"

    def __init__(self, data_source: ProductDataSource, default_page_size: int = 10):
        """
        Initialize strategy with its data source.

        Args:
            data_source: Product data source shared by both engines
            default_page_size: Page size of the initial view
        """
        self.data_source = data_source
        self._view = QueryState(page_size=default_page_size)

    @property
    def view_state(self) -> QueryState:
        """QueryState of the last successful call on this engine"""
        return self._view

    @abstractmethod
    async def apply_and_paginate(self, state: QueryState) -> PageResult:
        """
        Filter, search and paginate in one step.

        Args:
            state: Complete search/filter/pagination parameters

        Returns:
            PageResult whose total_items is the filtered, pre-pagination size

        Raises:
            InvalidPageSize / InvalidPageNumber: before any data source call
            DataSourceUnavailable / RemoteQueryFailed: data source failure
        """
        pass

    @abstractmethod
    async def get_products(self) -> List[Product]:
        """Products currently held by the engine"""
        pass

    @abstractmethod
    async def get_products_count(self) -> int:
        """Total catalog size as reported by the data source"""
        pass

    async def _run(self, state: QueryState) -> PageResult:
        result = await self.apply_and_paginate(state)
        self._view = state
        return result

    async def apply_filters_and_search(
        self,
        search_term: Optional[str],
        filters: Optional[Iterable[FilterInput]],
        page_number: int,
        page_size: int,
    ) -> PageResult:
        state = QueryState(
            search_term=search_term,
            filters=list(filters or []),
            page_number=page_number,
            page_size=page_size,
        )
        return await self._run(state)

    async def apply_filters(self, filters: Iterable[FilterInput]) -> PageResult:
        """Replace the filter set of the current view (page resets to 1)"""
        return await self._run(self._view.with_filters(filters))

    async def search(self, search_term: Optional[str]) -> PageResult:
        """Replace the search term of the current view (page resets to 1)"""
        return await self._run(self._view.with_search_term(search_term))

    async def paginate(self, page_number: int, page_size: int) -> List[Product]:
        """Page through the current view without touching search or filters"""
        state = self._view.model_copy(update={"page_number": page_number, "page_size": page_size})
        result = await self._run(state)
        return result.items

    def get_name(self) -> str:
        """
        Get the name of this strategy.

        Returns:
            Strategy name (e.g., "in_memory", "remote")
        """
        return self.kind
