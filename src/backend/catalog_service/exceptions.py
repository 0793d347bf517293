"""
Catalog Error Taxonomy

All errors raised by the filtering core derive from CatalogError so callers
(HTTP layer, browse session) can tell "zero matches" apart from "query failed".
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for every catalog filtering error"""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class DataSourceUnavailable(CatalogError):
    """Fetch, count or connect failure. Fatal to the current operation, recoverable by retry."""


class RemoteQueryFailed(CatalogError):
    """Query round-trip failure. Must reach the caller, never reported as an empty page."""


class InvalidPageRequest(CatalogError):
    """Caller supplied pagination input that cannot be served"""


class InvalidPageSize(InvalidPageRequest):
    """page_size must be >= 1"""


class InvalidPageNumber(InvalidPageRequest):
    """page_number must be >= 1"""


class ConfigurationError(CatalogError):
    """Catalog configuration is missing or invalid"""
