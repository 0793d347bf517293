"""
Filter and Query State Models

FilterSpec mirrors the catalog's filter wire shape: one tagged model whose
``type`` decides which of the optional fields carries the configuration.
QueryState is the full set of search/filter/pagination parameters and is
never mutated in place; every ``with_*`` helper returns a new state.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FilterType(str, Enum):
    """Discriminator for FilterSpec"""
    VALUE = "value"
    RANGE = "range"
    GREATER = "greater"
    SMALLER = "smaller"
    MULTISELECT = "multiselect"


class PriceRange(BaseModel):
    """Inclusive numeric bounds; None means unbounded on that side"""

    model_config = ConfigDict(frozen=True)

    min: Optional[float] = None
    max: Optional[float] = None


MultiselectInput = Union[Dict[str, bool], Sequence[Tuple[str, bool]]]


class FilterSpec(BaseModel):
    """
    Declarative filter applied to one product field.

    Only the attribute matching ``type`` is consulted:
    - value: case-insensitive substring
    - range: inclusive min/max
    - greater / smaller: exclusive threshold
    - multiselect: ordered (option, selected) pairs
    """

    model_config = ConfigDict(frozen=True)

    type: FilterType
    value: Optional[str] = None
    range: Optional[PriceRange] = None
    greater: Optional[float] = None
    smaller: Optional[float] = None
    multiselect: Optional[Tuple[Tuple[str, bool], ...]] = None

    @field_validator("multiselect", mode="before")
    @classmethod
    def _normalize_multiselect(cls, v: Any) -> Any:
        # Accept {option: bool} mappings and keep insertion order
        if isinstance(v, dict):
            return tuple((str(k), bool(flag)) for k, flag in v.items())
        return v

    @classmethod
    def value_match(cls, value: Optional[str]) -> "FilterSpec":
        return cls(type=FilterType.VALUE, value=value)

    @classmethod
    def between(cls, min: Optional[float] = None, max: Optional[float] = None) -> "FilterSpec":
        return cls(type=FilterType.RANGE, range=PriceRange(min=min, max=max))

    @classmethod
    def greater_than(cls, threshold: Optional[float]) -> "FilterSpec":
        return cls(type=FilterType.GREATER, greater=threshold)

    @classmethod
    def smaller_than(cls, threshold: Optional[float]) -> "FilterSpec":
        return cls(type=FilterType.SMALLER, smaller=threshold)

    @classmethod
    def options(cls, selection: MultiselectInput) -> "FilterSpec":
        return cls(type=FilterType.MULTISELECT, multiselect=selection)

    @classmethod
    def selecting(cls, options: Iterable[str], selected: Iterable[str]) -> "FilterSpec":
        """Build a multiselect over ``options`` with ``selected`` flagged true"""
        chosen = set(selected)
        return cls(
            type=FilterType.MULTISELECT,
            multiselect=tuple((option, option in chosen) for option in options),
        )

    def selected_options(self) -> List[str]:
        """Options flagged true, in declaration order"""
        if not self.multiselect:
            return []
        return [option for option, selected in self.multiselect if selected]


class FilterEntry(BaseModel):
    """One (field_key, FilterSpec) pair of a QueryState"""

    model_config = ConfigDict(frozen=True)

    key: str
    filter: FilterSpec


FilterInput = Union[FilterEntry, Tuple[str, FilterSpec], Dict[str, Any]]


def _coerce_entry(entry: Any) -> Any:
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        key, spec = entry
        return {"key": key, "filter": spec}
    return entry


class QueryState(BaseModel):
    """
    Current search, filter and pagination parameters of a browse session.

    Any change of search term, filter set or page size resets the page to 1;
    a page change alone keeps everything else.
    """

    model_config = ConfigDict(frozen=True)

    search_term: str = ""
    filters: Tuple[FilterEntry, ...] = ()
    page_number: int = 1
    page_size: int = 10

    @field_validator("filters", mode="before")
    @classmethod
    def _coerce_filters(cls, v: Any) -> Any:
        if v is None:
            return ()
        return tuple(_coerce_entry(entry) for entry in v)

    @field_validator("search_term", mode="before")
    @classmethod
    def _coerce_search_term(cls, v: Any) -> Any:
        return "" if v is None else v

    def filter_for(self, field_key: str) -> Optional[FilterSpec]:
        for entry in self.filters:
            if entry.key == field_key:
                return entry.filter
        return None

    def with_search_term(self, search_term: Optional[str]) -> "QueryState":
        return self.model_copy(update={"search_term": search_term or "", "page_number": 1})

    def with_filters(self, filters: Iterable[FilterInput]) -> "QueryState":
        return QueryState(
            search_term=self.search_term,
            filters=list(filters),
            page_number=1,
            page_size=self.page_size,
        )

    def with_filter(self, field_key: str, spec: FilterSpec) -> "QueryState":
        """Replace the filter on ``field_key`` in place, or append it"""
        entries = list(self.filters)
        replacement = FilterEntry(key=field_key, filter=spec)
        for idx, entry in enumerate(entries):
            if entry.key == field_key:
                entries[idx] = replacement
                break
        else:
            entries.append(replacement)
        return self.model_copy(update={"filters": tuple(entries), "page_number": 1})

    def without_filter(self, field_key: str) -> "QueryState":
        entries = tuple(e for e in self.filters if e.key != field_key)
        return self.model_copy(update={"filters": entries, "page_number": 1})

    def with_page(self, page_number: int) -> "QueryState":
        return self.model_copy(update={"page_number": page_number})

    def with_page_size(self, page_size: int) -> "QueryState":
        return self.model_copy(update={"page_size": page_size, "page_number": 1})


class FilterLogic(str, Enum):
    """How a payload filter combines its own values"""
    AND = "and"
    OR = "or"


class PayloadFilter(BaseModel):
    """Single filter of a remote query payload"""

    key: str
    values: List[str] = Field(default_factory=list)
    type: FilterType
    logic: FilterLogic = FilterLogic.AND


class FilterRequestPayload(BaseModel):
    """
    Remote query payload sent to a data source.

    Serialized with ``model_dump(by_alias=True)`` as
    ``{searchTerm, filters, currentPage, pageSize}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    search_term: str = Field(default="", alias="searchTerm")
    filters: List[PayloadFilter] = Field(default_factory=list)
    current_page: int = Field(default=1, alias="currentPage")
    page_size: int = Field(default=10, alias="pageSize")

    @property
    def skip(self) -> int:
        return max(0, (self.current_page - 1) * self.page_size)
