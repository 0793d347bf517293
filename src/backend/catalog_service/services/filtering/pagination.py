"""
Pagination Calculator

Shared page-bound arithmetic used by both filtering strategies and by the
API layer. Pages are 1-indexed.
"""

import math
from typing import Tuple

from catalog_service.exceptions import InvalidPageNumber, InvalidPageSize


def validate_page_request(page_number: int, page_size: int) -> None:
    """
    Reject pagination input before any data source is touched.

    Raises:
        InvalidPageSize: page_size < 1
        InvalidPageNumber: page_number < 1
    """
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise InvalidPageSize(f"page_size must be a positive integer, got {page_size!r}")
    if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number < 1:
        raise InvalidPageNumber(f"page_number must be a positive integer, got {page_number!r}")


def compute_slice(page_number: int, page_size: int, total_items: int) -> Tuple[int, int]:
    """
    Compute the [start, end) window of a page over ``total_items``.

    Args:
        page_number: 1-indexed page
        page_size: Items per page
        total_items: Size of the filtered collection

    Returns:
        (start_index, end_index_exclusive), both clamped to total_items.
        A page past the end yields start == end == total_items.

    Example:
        >>> compute_slice(3, 10, 25)
        (20, 25)
    """
    validate_page_request(page_number, page_size)
    total = max(0, total_items)
    start = min((page_number - 1) * page_size, total)
    end = min(start + page_size, total)
    return start, end


def total_pages(total_items: int, page_size: int) -> int:
    """ceil(total_items / page_size); 0 for an empty collection"""
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise InvalidPageSize(f"page_size must be a positive integer, got {page_size!r}")
    if total_items <= 0:
        return 0
    return math.ceil(total_items / page_size)


def expected_page_length(page_number: int, page_size: int, total_items: int) -> int:
    """Number of items a page must hold: min(size, max(0, total - offset))"""
    return min(page_size, max(0, total_items - (page_number - 1) * page_size))
