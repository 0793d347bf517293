"""
Catalog Cypher Query Builder

Builds parameterized Cypher for (:Product) nodes from a remote query
payload. Every builder returns a ``(query, params)`` tuple; user input only
ever travels through parameters, and field keys are whitelisted against the
Product model so they can be inlined as property names.

Semantics match the in-memory predicates:
- search: case-insensitive CONTAINS over name, description, category (OR)
- filters: ANDed with each other
- multiselect "or": property value IN the selected options (numeric fields by value)
- range: inclusive bounds, "" is unbounded
- greater / smaller: exclusive
- unknown field keys: ``false`` (non-matching)
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from catalog_service.models.filters import FilterLogic, FilterRequestPayload, FilterType, PayloadFilter
from catalog_service.models.product import NUMERIC_FIELDS, SEARCH_FIELDS, resolve_field_name
from catalog_service.services.filtering.payload import parse_number
from catalog_service.services.filtering.predicates import as_number

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

RETURN_FIELDS = ("id", "name", "category", "price", "description", "image_url")


class CatalogQueryBuilder:
    """
    Cypher builder for catalog queries.

    Example:
        >>> builder = CatalogQueryBuilder()
        >>> query, params = builder.build_count_query()
        >>> # ("MATCH (p:Product)\\nRETURN count(p) AS total", {})
    """

    def __init__(self, label: str = "Product", node_alias: str = "p"):
        if not _IDENTIFIER.match(label):
            raise ValueError(f"Invalid Neo4j label: {label!r}")
        if not _IDENTIFIER.match(node_alias):
            raise ValueError(f"Invalid node alias: {node_alias!r}")
        self.label = label
        self.alias = node_alias

    def build_match(self) -> str:
        return f"MATCH ({self.alias}:{self.label})"

    def build_return_clause(self) -> str:
        fields = ", ".join(f"{self.alias}.{name} AS {name}" for name in RETURN_FIELDS)
        return f"RETURN {fields}"

    def build_search_condition(self, search_term: str, params: Dict[str, Any]) -> Optional[str]:
        if not search_term:
            return None
        params["search_term"] = search_term.lower()
        checks = [
            f"toLower(coalesce({self.alias}.{name}, '')) CONTAINS $search_term"
            for name in SEARCH_FIELDS
        ]
        return "(" + " OR ".join(checks) + ")"

    def build_filter_condition(
        self,
        idx: int,
        payload_filter: PayloadFilter,
        params: Dict[str, Any],
    ) -> str:
        """
        Build the condition for one payload filter.

        Args:
            idx: Position of the filter, used to namespace parameters
            payload_filter: Filter to translate
            params: Parameter dict, updated in place

        Returns:
            Cypher boolean expression
        """
        attr = resolve_field_name(payload_filter.key)
        if attr is None:
            logger.warning(f"Unknown filter field '{payload_filter.key}' - compiled as false")
            return "false"

        prop = f"{self.alias}.{attr}"
        prefix = f"f{idx}"
        joiner = " OR " if payload_filter.logic == FilterLogic.OR else " AND "

        if payload_filter.type == FilterType.MULTISELECT:
            if attr in NUMERIC_FIELDS:
                # compare by value; stored ints and floats render differently as strings
                numbers = [as_number(v) for v in payload_filter.values]
                if payload_filter.logic == FilterLogic.AND and None in numbers:
                    return "false"
                params[f"{prefix}_values"] = [n for n in numbers if n is not None]
                subject = f"toFloat({prop})"
            else:
                params[f"{prefix}_values"] = list(payload_filter.values)
                subject = f"toString({prop})"
            if payload_filter.logic == FilterLogic.OR:
                return f"{subject} IN ${prefix}_values"
            return f"ALL(v IN ${prefix}_values WHERE {subject} = v)"

        if payload_filter.type == FilterType.VALUE:
            checks = []
            for vidx, value in enumerate(payload_filter.values):
                name = f"{prefix}_v{vidx}"
                params[name] = (value or "").lower()
                checks.append(f"toLower(coalesce(toString({prop}), '')) CONTAINS ${name}")
            return "(" + joiner.join(checks) + ")" if checks else "true"

        if payload_filter.type == FilterType.RANGE:
            bounds = list(payload_filter.values) + ["", ""]
            low, high = parse_number(bounds[0]), parse_number(bounds[1])
            checks = []
            if low is not None:
                params[f"{prefix}_min"] = low
                checks.append(f"{prop} >= ${prefix}_min")
            if high is not None:
                params[f"{prefix}_max"] = high
                checks.append(f"{prop} <= ${prefix}_max")
            return "(" + " AND ".join(checks) + ")" if checks else "true"

        threshold = parse_number(payload_filter.values[0]) if payload_filter.values else None
        if threshold is None:
            return "true"
        params[f"{prefix}_threshold"] = threshold
        operator = ">" if payload_filter.type == FilterType.GREATER else "<"
        return f"{prop} {operator} ${prefix}_threshold"

    def build_where(self, payload: Optional[FilterRequestPayload]) -> Tuple[str, Dict[str, Any]]:
        """Combine search and filters into a single WHERE clause ("" when unfiltered)"""
        params: Dict[str, Any] = {}
        if payload is None:
            return "", params

        conditions: List[str] = []
        search = self.build_search_condition(payload.search_term, params)
        if search:
            conditions.append(search)
        for idx, payload_filter in enumerate(payload.filters):
            conditions.append(self.build_filter_condition(idx, payload_filter, params))

        if not conditions:
            return "", params
        return "WHERE " + "\nAND ".join(conditions), params

    def build_fetch_all_query(self) -> Tuple[str, Dict[str, Any]]:
        query = "\n".join([
            self.build_match(),
            self.build_return_clause(),
            f"ORDER BY {self.alias}.id",
        ])
        return query, {}

    def build_count_query(self, payload: Optional[FilterRequestPayload] = None) -> Tuple[str, Dict[str, Any]]:
        where, params = self.build_where(payload)
        parts = [self.build_match()]
        if where:
            parts.append(where)
        parts.append(f"RETURN count({self.alias}) AS total")
        return "\n".join(parts), params

    def build_page_query(self, payload: FilterRequestPayload) -> Tuple[str, Dict[str, Any]]:
        where, params = self.build_where(payload)
        parts = [self.build_match()]
        if where:
            parts.append(where)
        parts.append(self.build_return_clause())
        parts.append(f"ORDER BY {self.alias}.id")
        parts.append("SKIP $skip LIMIT $limit")
        params["skip"] = payload.skip
        params["limit"] = payload.page_size
        return "\n".join(parts), params
