"""Models package - products, filters, query state and remote payloads"""

from .product import (
    Product,
    PageResult,
    QueryResponse,
    PRODUCT_FIELD_KEYS,
    SEARCH_FIELDS,
    resolve_field_name,
)

from .filters import (
    FilterType,
    FilterLogic,
    PriceRange,
    FilterSpec,
    FilterEntry,
    QueryState,
    PayloadFilter,
    FilterRequestPayload,
)

__all__ = [
    "Product",
    "PageResult",
    "QueryResponse",
    "PRODUCT_FIELD_KEYS",
    "SEARCH_FIELDS",
    "resolve_field_name",
    "FilterType",
    "FilterLogic",
    "PriceRange",
    "FilterSpec",
    "FilterEntry",
    "QueryState",
    "PayloadFilter",
    "FilterRequestPayload",
]
