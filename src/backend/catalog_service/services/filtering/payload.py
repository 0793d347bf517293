"""
Remote Query Payload Builder

Serializes a QueryState into the payload a data source answers in
``query()``. The translation keeps the in-memory semantics: vacuous filters
are dropped, filters are ANDed at the top level, multiselect alternatives
are ORed, and ranges carry explicit min/max ("" for an unbounded side).
"""

import logging
from typing import List, Optional

from catalog_service.models.filters import (
    FilterLogic,
    FilterRequestPayload,
    FilterSpec,
    FilterType,
    PayloadFilter,
    QueryState,
)
from .predicates import is_vacuous

logger = logging.getLogger(__name__)

UNBOUNDED = ""


def format_number(value: Optional[float]) -> str:
    """Lossless string form of a numeric bound"""
    if value is None:
        return UNBOUNDED
    return repr(float(value))


def parse_number(raw: Optional[str]) -> Optional[float]:
    """Inverse of format_number; "" and None are unbounded"""
    if raw is None or str(raw).strip() == UNBOUNDED:
        return None
    return float(raw)


def to_payload_filter(field_key: str, spec: FilterSpec) -> Optional[PayloadFilter]:
    """
    Translate one filter into its payload form.

    Returns:
        PayloadFilter, or None when the filter is vacuous
    """
    if is_vacuous(spec):
        return None

    if spec.type == FilterType.MULTISELECT:
        return PayloadFilter(
            key=field_key,
            values=spec.selected_options(),
            type=FilterType.MULTISELECT,
            logic=FilterLogic.OR,
        )

    if spec.type == FilterType.RANGE:
        return PayloadFilter(
            key=field_key,
            values=[format_number(spec.range.min), format_number(spec.range.max)],
            type=FilterType.RANGE,
            logic=FilterLogic.AND,
        )

    if spec.type == FilterType.GREATER:
        values = [format_number(spec.greater)]
    elif spec.type == FilterType.SMALLER:
        values = [format_number(spec.smaller)]
    else:
        values = [spec.value]

    return PayloadFilter(key=field_key, values=values, type=spec.type, logic=FilterLogic.AND)


def build_query_payload(state: QueryState) -> FilterRequestPayload:
    """Serialize a full QueryState for ``ProductDataSource.query()``"""
    filters: List[PayloadFilter] = []
    for entry in state.filters:
        payload_filter = to_payload_filter(entry.key, entry.filter)
        if payload_filter is not None:
            filters.append(payload_filter)

    payload = FilterRequestPayload(
        search_term=state.search_term,
        filters=filters,
        current_page=state.page_number,
        page_size=state.page_size,
    )
    logger.debug(
        f"Built query payload: {len(filters)}/{len(state.filters)} active filters, "
        f"page {payload.current_page} (size {payload.page_size})"
    )
    return payload
