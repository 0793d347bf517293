"""
Unit tests for the remote query payload builder
"""

import pytest

from catalog_service.models.filters import FilterLogic, FilterSpec, FilterType, QueryState
from catalog_service.services.filtering.payload import (
    UNBOUNDED,
    build_query_payload,
    format_number,
    parse_number,
    to_payload_filter,
)


class TestToPayloadFilter:

    def test_multiselect_sends_selected_options_with_or(self):
        spec = FilterSpec.options({"Electronics": True, "Fashion": False, "Toys": True})
        pf = to_payload_filter("category", spec)
        assert pf.values == ["Electronics", "Toys"]
        assert pf.type == FilterType.MULTISELECT
        assert pf.logic == FilterLogic.OR

    def test_range_sends_min_and_max(self):
        pf = to_payload_filter("price", FilterSpec.between(50, 150))
        assert pf.values == ["50.0", "150.0"]
        assert pf.logic == FilterLogic.AND

    def test_half_open_range(self):
        pf = to_payload_filter("price", FilterSpec.between(None, 20))
        assert pf.values == [UNBOUNDED, "20.0"]

    def test_value_greater_smaller_single_value(self):
        assert to_payload_filter("name", FilterSpec.value_match("pho")).values == ["pho"]
        assert to_payload_filter("price", FilterSpec.greater_than(10)).values == ["10.0"]
        assert to_payload_filter("price", FilterSpec.smaller_than(0.5)).values == ["0.5"]
        assert to_payload_filter("price", FilterSpec.smaller_than(0.5)).type == FilterType.SMALLER

    @pytest.mark.parametrize("spec", [
        FilterSpec.options({"Electronics": False}),
        FilterSpec.between(None, None),
        FilterSpec.value_match(None),
        FilterSpec.greater_than(None),
    ])
    def test_vacuous_filters_are_dropped(self, spec):
        assert to_payload_filter("price", spec) is None


class TestNumbers:

    def test_round_trip_is_lossless(self):
        for value in (0.1, 19.99, 1e-7, 123456789.125):
            assert parse_number(format_number(value)) == value

    def test_unbounded(self):
        assert format_number(None) == UNBOUNDED
        assert parse_number("") is None
        assert parse_number(None) is None


class TestBuildQueryPayload:

    def test_full_state(self):
        state = QueryState(
            search_term="phone",
            filters=[
                ("category", FilterSpec.options({"Electronics": True})),
                ("price", FilterSpec.between(None, None)),
            ],
            page_number=3,
            page_size=5,
        )
        payload = build_query_payload(state)

        assert payload.search_term == "phone"
        assert [f.key for f in payload.filters] == ["category"]
        assert payload.current_page == 3
        assert payload.page_size == 5
        assert payload.skip == 10

    def test_wire_shape(self):
        state = QueryState(filters=[("price", FilterSpec.between(50, None))], page_size=20)
        body = build_query_payload(state).model_dump(by_alias=True, mode="json")

        assert body == {
            "searchTerm": "",
            "filters": [{"key": "price", "values": ["50.0", ""], "type": "range", "logic": "and"}],
            "currentPage": 1,
            "pageSize": 20,
        }
