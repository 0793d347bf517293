"""
Base Product Data Source Interface

Defines the abstract collaborator the filtering strategies talk to. Data
sources can be a static JSON catalog, a Neo4j graph, a remote REST API, or
any future backend.
"""

from abc import ABC, abstractmethod
from typing import List

from catalog_service.models.filters import FilterRequestPayload
from catalog_service.models.product import Product, QueryResponse


class ProductDataSource(ABC):
    """
    Abstract base class for all product data sources.

    Error contract:
    - fetch_all() / count() raise DataSourceUnavailable
    - query() raises RemoteQueryFailed
    No retries are performed here; retry policy belongs to the concrete source.
    """

    source_type: str = "abstract"

    @abstractmethod
    async def fetch_all(self) -> List[Product]:
        """
        Fetch the entire catalog in stored order.

        Used only by the in-memory strategy.
        """

    @abstractmethod
    async def count(self) -> int:
        """
        Total number of products in the catalog.

        Used by the strategy selector.
        """

    @abstractmethod
    async def query(self, payload: FilterRequestPayload) -> QueryResponse:
        """
        Filter, search and paginate on the source side.

        Args:
            payload: Serialized QueryState (search term, filters, page)

        Returns:
            QueryResponse with the page of products and the filtered total

        Used only by the remote strategy.
        """

    async def close(self) -> None:
        """Release any resources held by the source"""
        return None

    def get_name(self) -> str:
        return self.__class__.__name__.replace("ProductDataSource", "").lower() or self.source_type
