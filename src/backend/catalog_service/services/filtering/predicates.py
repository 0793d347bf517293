"""
Filter Predicate Evaluator

Evaluates declarative filter specs against a single product. The evaluator
never raises: unknown field keys and values that cannot be compared are
treated as non-matching so that one malformed filter does not abort the
whole filter pass.
"""

import logging
from typing import Any, Iterable, Optional

from catalog_service.models.filters import FilterEntry, FilterSpec, FilterType
from catalog_service.models.product import NUMERIC_FIELDS, SEARCH_FIELDS, Product, resolve_field_name

logger = logging.getLogger(__name__)

_MISSING = object()


def _field_value(product: Product, field_key: str) -> Any:
    attr = resolve_field_name(field_key)
    if attr is None:
        return _MISSING
    return getattr(product, attr, _MISSING)


def as_number(raw: Any) -> Optional[float]:
    if isinstance(raw, bool) or raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _as_text(raw: Any) -> str:
    return "" if raw is None else str(raw)


def is_numeric_field(field_key: str) -> bool:
    return resolve_field_name(field_key) in NUMERIC_FIELDS


def option_matches(raw: Any, option: str, numeric: bool = False) -> bool:
    """
    Compare a field value with one multiselect option.

    Numeric fields compare by value so that "79", "79.0" and 79 agree
    whatever form the data source stores; everything else compares as text.
    """
    if numeric:
        number, wanted = as_number(raw), as_number(option)
        return number is not None and wanted is not None and number == wanted
    return _as_text(raw) == option


def is_vacuous(spec: FilterSpec) -> bool:
    """
    True when ``spec`` excludes nothing and can be dropped.

    - value: no value set
    - range: no range, or both bounds null
    - greater / smaller: no threshold
    - multiselect: no option selected
    """
    if spec.type == FilterType.VALUE:
        return spec.value is None
    if spec.type == FilterType.RANGE:
        return spec.range is None or (spec.range.min is None and spec.range.max is None)
    if spec.type == FilterType.GREATER:
        return spec.greater is None
    if spec.type == FilterType.SMALLER:
        return spec.smaller is None
    if spec.type == FilterType.MULTISELECT:
        return not any(selected for _, selected in (spec.multiselect or ()))
    return False


def matches(product: Product, field_key: str, spec: FilterSpec) -> bool:
    """
    Evaluate one filter against one product.

    Args:
        product: Product to test
        field_key: Product field the filter applies to (e.g. "category", "price")
        spec: Filter configuration

    Returns:
        True if the product passes the filter
    """
    if is_vacuous(spec):
        return True

    raw = _field_value(product, field_key)
    if raw is _MISSING:
        logger.warning(f"Unknown filter field '{field_key}' - treating as non-matching")
        return False

    if spec.type == FilterType.VALUE:
        return spec.value.lower() in _as_text(raw).lower()

    if spec.type == FilterType.MULTISELECT:
        numeric = is_numeric_field(field_key)
        return any(option_matches(raw, option, numeric) for option in spec.selected_options())

    number = as_number(raw)
    if number is None:
        logger.warning(
            f"Field '{field_key}' value {raw!r} is not numeric - "
            f"'{spec.type.value}' filter treated as non-matching"
        )
        return False

    if spec.type == FilterType.RANGE:
        low, high = spec.range.min, spec.range.max
        if low is not None and number < low:
            return False
        if high is not None and number > high:
            return False
        return True

    if spec.type == FilterType.GREATER:
        return number > spec.greater

    if spec.type == FilterType.SMALLER:
        return number < spec.smaller

    logger.warning(f"Unsupported filter type {spec.type!r} on '{field_key}'")
    return False


def matches_all(product: Product, filters: Iterable[FilterEntry]) -> bool:
    """Conjunction across every filter; filters on different keys never OR"""
    return all(matches(product, entry.key, entry.filter) for entry in filters)


def matches_search(product: Product, search_term: Optional[str]) -> bool:
    """Case-insensitive substring match on name, category or description"""
    if not search_term:
        return True
    needle = search_term.lower()
    return any(needle in _as_text(getattr(product, name)).lower() for name in SEARCH_FIELDS)
