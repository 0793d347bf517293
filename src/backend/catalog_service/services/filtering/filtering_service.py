"""
Filtering Service (Strategy Selector)

Holds both filtering engines and routes every call to the active one. The
active engine is chosen from the catalog size: above the threshold the data
source does the filtering (remote), otherwise the whole catalog is loaded
and filtered in memory.

Usage:
    from catalog_service.services.filtering import FilteringService

    service = FilteringService.from_data_source(data_source, threshold=100)
    total = await service.evaluate_and_select()
    page = await service.apply_filters_and_search("phone", [], 1, 10)
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional

from catalog_service.exceptions import ConfigurationError
from catalog_service.models.filters import FilterInput, QueryState
from catalog_service.models.product import PageResult, Product
from catalog_service.services.datasource.base import ProductDataSource
from catalog_service.utils.logging_context import log_context
from .strategies.base import FilteringStrategy
from .strategies.client_side import InMemoryFilteringStrategy
from .strategies.server_side import RemoteFilteringStrategy

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY_THRESHOLD = 100


class StrategyKind(str, Enum):
    IN_MEMORY = "in_memory"
    REMOTE = "remote"


class FilteringService:
    """
    Strategy selector exposing one unified filtering interface.

    Selection only happens in ``evaluate_and_select()``; between two
    selections every call goes to the same engine. Selecting a different
    engine does not replay the previous query, callers re-issue it.
    """

    def __init__(
        self,
        in_memory: InMemoryFilteringStrategy,
        remote: RemoteFilteringStrategy,
        threshold: int = DEFAULT_STRATEGY_THRESHOLD,
    ):
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
            raise ConfigurationError(f"strategy threshold must be a non-negative integer, got {threshold!r}")

        self.threshold = threshold
        self._engines = {
            StrategyKind.IN_MEMORY: in_memory,
            StrategyKind.REMOTE: remote,
        }
        self._active_kind = StrategyKind.IN_MEMORY
        self.last_count: Optional[int] = None

        logger.info(f"FilteringService initialized (threshold={threshold}, active={self._active_kind.value})")

    @classmethod
    def from_data_source(
        cls,
        data_source: ProductDataSource,
        threshold: int = DEFAULT_STRATEGY_THRESHOLD,
        default_page_size: int = 10,
    ) -> "FilteringService":
        """Build both engines over one shared data source"""
        return cls(
            in_memory=InMemoryFilteringStrategy(data_source, default_page_size),
            remote=RemoteFilteringStrategy(data_source, default_page_size),
            threshold=threshold,
        )

    @property
    def active_kind(self) -> StrategyKind:
        return self._active_kind

    @property
    def active_strategy(self) -> FilteringStrategy:
        return self._engines[self._active_kind]

    @property
    def in_memory(self) -> InMemoryFilteringStrategy:
        return self._engines[StrategyKind.IN_MEMORY]

    @property
    def remote(self) -> RemoteFilteringStrategy:
        return self._engines[StrategyKind.REMOTE]

    def kind_for_count(self, count: int) -> StrategyKind:
        return StrategyKind.REMOTE if count > self.threshold else StrategyKind.IN_MEMORY

    async def evaluate_and_select(self) -> int:
        """
        Read the catalog size and activate the matching engine.

        The in-memory engine is (re)loaded before it becomes active whenever
        it was not the active engine, or its working set no longer matches
        the reported count. If the count or the load fails the previous
        engine stays active and the error propagates.

        Returns:
            Total catalog size reported by the data source

        Raises:
            DataSourceUnavailable: count or load failed
        """
        with log_context(operation="strategy_selection"):
            count = await self.active_strategy.get_products_count()
            kind = self.kind_for_count(count)

            previous = self._active_kind
            if kind == StrategyKind.IN_MEMORY and self._needs_reload(previous, count):
                await self.in_memory.load()


            self._active_kind = kind
            self.last_count = count

            if previous != kind:
                logger.info(
                    f"Switched filtering strategy {previous.value} -> {kind.value} "
                    f"(count={count}, threshold={self.threshold})"
                )
            else:
                logger.info(f"Kept filtering strategy {kind.value} (count={count}, threshold={self.threshold})")
            return count

    def _needs_reload(self, previous: StrategyKind, count: int) -> bool:
        if not self.in_memory.is_loaded or previous != StrategyKind.IN_MEMORY:
            return True
        return self.in_memory.loaded_count != count

    async def switch_strategy(self) -> int:
        return await self.evaluate_and_select()

    async def apply_and_paginate(self, state: QueryState) -> PageResult:
        return await self.active_strategy.apply_and_paginate(state)

    async def apply_filters_and_search(
        self,
        search_term: Optional[str],
        filters: Optional[Iterable[FilterInput]],
        page_number: int,
        page_size: int,
    ) -> PageResult:
        return await self.active_strategy.apply_filters_and_search(
            search_term, filters, page_number, page_size
        )

    async def apply_filters(self, filters: Iterable[FilterInput]) -> PageResult:
        return await self.active_strategy.apply_filters(filters)

    async def search(self, search_term: Optional[str]) -> PageResult:
        return await self.active_strategy.search(search_term)

    async def paginate(self, page_number: int, page_size: int) -> List[Product]:
        return await self.active_strategy.paginate(page_number, page_size)

    async def get_products(self) -> List[Product]:
        return await self.active_strategy.get_products()

    async def get_products_count(self) -> int:
        return await self.active_strategy.get_products_count()

    def available_options(self, field_key: str) -> List[str]:
        """
        Distinct values of a field for building multiselect options.

        Only the in-memory engine holds the full catalog; under the remote
        engine this returns [].
        """
        if self._active_kind != StrategyKind.IN_MEMORY:
            return []
        return self.in_memory.available_options(field_key)

    def describe(self) -> dict:
        return {
            "strategy": self._active_kind.value,
            "threshold": self.threshold,
            "last_count": self.last_count,
            "data_source": self.in_memory.data_source.get_name(),
        }
