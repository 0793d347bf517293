"""
HTTP Product Data Source

Talks to a product REST service:
- GET  /api/products         -> list of products
- GET  /api/products/count   -> bare number (or {"count": n})
- POST /api/products/filter  -> {"products": [...], "totalItems": n}
"""

import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from catalog_service.exceptions import DataSourceUnavailable, RemoteQueryFailed
from catalog_service.models.filters import FilterRequestPayload
from catalog_service.models.product import Product, QueryResponse
from .base import ProductDataSource

logger = logging.getLogger(__name__)

PRODUCTS_PATH = "/api/products"
COUNT_PATH = "/api/products/count"
FILTER_PATH = "/api/products/filter"


class HttpProductDataSource(ProductDataSource):
    """
    Data source backed by a remote product API.

    Args:
        base_url: Service root, e.g. "http://localhost:5000"
        timeout_seconds: Per-request timeout
        client: Pre-built AsyncClient (tests inject one with MockTransport);
            a client passed in is not closed by ``close()``
    """

    source_type = "http"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout_seconds)

    async def _get_json(self, path: str) -> Any:
        response = await self.client.get(path)
        response.raise_for_status()
        return response.json()

    async def fetch_all(self) -> List[Product]:
        try:
            data = await self._get_json(PRODUCTS_PATH)
            products = [Product.model_validate(item) for item in data]
        except (httpx.HTTPError, ValueError, TypeError, ValidationError) as e:
            logger.error(f"GET {PRODUCTS_PATH} failed: {e}")
            raise DataSourceUnavailable(f"Product API fetch failed: {e}", cause=e) from e

        logger.info(f"Fetched {len(products)} products from {self.base_url}")
        return products

    async def count(self) -> int:
        try:
            data = await self._get_json(COUNT_PATH)
            if isinstance(data, dict):
                data = data["count"]
            return int(data)
        except (httpx.HTTPError, ValueError, TypeError, KeyError) as e:
            logger.error(f"GET {COUNT_PATH} failed: {e}")
            raise DataSourceUnavailable(f"Product API count failed: {e}", cause=e) from e

    async def query(self, payload: FilterRequestPayload) -> QueryResponse:
        body = payload.model_dump(by_alias=True, mode="json")
        try:
            response = await self.client.post(FILTER_PATH, json=body)
            response.raise_for_status()
            return QueryResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.error(f"POST {FILTER_PATH} failed: {e}")
            raise RemoteQueryFailed(f"Product API filter query failed: {e}", cause=e) from e

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
