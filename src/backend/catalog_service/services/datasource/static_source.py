"""
Static Product Data Source

Serves a catalog held in memory or loaded from a JSON file (the bundled
sample catalog by default). ``query()`` evaluates the remote payload on the
source side, the way a document store would: case-insensitive search over
name/description/category, ``or`` filters as membership, ``and`` filters as
all-of, inclusive ranges, then skip/limit in stored order.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from catalog_service.exceptions import DataSourceUnavailable, RemoteQueryFailed
from catalog_service.models.filters import FilterLogic, FilterRequestPayload, FilterType, PayloadFilter
from catalog_service.models.product import NUMERIC_FIELDS, Product, QueryResponse, resolve_field_name
from catalog_service.services.filtering.payload import parse_number
from catalog_service.services.filtering.predicates import option_matches
from .base import ProductDataSource

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent.parent / "data" / "products.json"


def _text(raw: Any) -> str:
    return "" if raw is None else str(raw)


def _payload_filter_matches(product: Product, payload_filter: PayloadFilter) -> bool:
    attr = resolve_field_name(payload_filter.key)
    if attr is None:
        return False
    raw = getattr(product, attr)
    values = payload_filter.values
    combine = any if payload_filter.logic == FilterLogic.OR else all

    if payload_filter.type == FilterType.MULTISELECT:
        numeric = attr in NUMERIC_FIELDS
        return combine(option_matches(raw, v, numeric) for v in values)

    if payload_filter.type == FilterType.VALUE:
        return combine(_text(v).lower() in _text(raw).lower() for v in values)

    try:
        number = float(raw)
    except (TypeError, ValueError):
        return False

    if payload_filter.type == FilterType.RANGE:
        bounds = list(values) + ["", ""]
        low, high = parse_number(bounds[0]), parse_number(bounds[1])
        return (low is None or number >= low) and (high is None or number <= high)

    threshold = parse_number(values[0]) if values else None
    if threshold is None:
        return True
    if payload_filter.type == FilterType.GREATER:
        return number > threshold
    if payload_filter.type == FilterType.SMALLER:
        return number < threshold
    return False


def _search_matches(product: Product, search_term: str) -> bool:
    if not search_term:
        return True
    needle = search_term.lower()
    return (
        needle in product.name.lower()
        or needle in product.description.lower()
        or needle in product.category.lower()
    )


class StaticProductDataSource(ProductDataSource):
    """
    In-process data source over a fixed product list.

    Products are either passed in directly or read lazily from ``path`` on
    first use; a missing or malformed file surfaces as DataSourceUnavailable.
    """

    source_type = "static"

    def __init__(
        self,
        products: Optional[Iterable[Union[Product, Dict[str, Any]]]] = None,
        path: Optional[Union[str, Path]] = None,
    ):
        self.path = Path(path) if path is not None else None
        self._products: Optional[List[Product]] = None
        if products is not None:
            self._products = [Product.model_validate(p) for p in products]
        elif self.path is None:
            self.path = DEFAULT_CATALOG_PATH

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "StaticProductDataSource":
        return cls(path=path)

    def _load(self) -> List[Product]:
        if self._products is not None:
            return self._products

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            self._products = [Product.model_validate(entry) for entry in raw]
        except (OSError, json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.error(f"Failed to load catalog from {self.path}: {e}")
            raise DataSourceUnavailable(f"Catalog file unavailable: {self.path}", cause=e) from e

        logger.info(f"Loaded {len(self._products)} products from {self.path}")
        return self._products

    async def fetch_all(self) -> List[Product]:
        return list(self._load())

    async def count(self) -> int:
        return len(self._load())

    async def query(self, payload: FilterRequestPayload) -> QueryResponse:
        try:
            products = self._load()
        except DataSourceUnavailable as e:
            raise RemoteQueryFailed(f"Query failed: {e.message}", cause=e) from e

        matched = [
            p for p in products
            if _search_matches(p, payload.search_term)
            and all(_payload_filter_matches(p, f) for f in payload.filters)
        ]
        skip = payload.skip
        page = matched[skip:skip + payload.page_size]

        logger.debug(f"Static query matched {len(matched)} products, returning {len(page)}")
        return QueryResponse(products=page, total_items=len(matched))
