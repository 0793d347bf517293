"""
Catalog Filtering Package

Filter predicates, pagination arithmetic, the two filtering engines and the
strategy selector that routes between them.
"""

from .filtering_service import DEFAULT_STRATEGY_THRESHOLD, FilteringService, StrategyKind
from .pagination import compute_slice, total_pages, validate_page_request
from .payload import build_query_payload
from .predicates import is_vacuous, matches, matches_all, matches_search
from .session import BrowseSessionRegistry, CatalogBrowseSession
from .strategies import FilteringStrategy, InMemoryFilteringStrategy, RemoteFilteringStrategy

__all__ = [
    "DEFAULT_STRATEGY_THRESHOLD",
    "FilteringService",
    "StrategyKind",
    "CatalogBrowseSession",
    "BrowseSessionRegistry",
    "FilteringStrategy",
    "InMemoryFilteringStrategy",
    "RemoteFilteringStrategy",
    "compute_slice",
    "total_pages",
    "validate_page_request",
    "build_query_payload",
    "is_vacuous",
    "matches",
    "matches_all",
    "matches_search",
]
