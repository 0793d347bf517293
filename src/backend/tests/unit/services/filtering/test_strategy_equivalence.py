"""
In-memory and remote engines must agree on the same QueryState when the
data source evaluates queries with the same semantics.
"""

import pytest

from catalog_service.models.filters import FilterSpec, QueryState
from catalog_service.services.filtering.strategies import (
    InMemoryFilteringStrategy,
    RemoteFilteringStrategy,
)


STATES = [
    QueryState(),
    QueryState(page_size=3, page_number=4),
    QueryState(page_size=4, page_number=9),
    QueryState(search_term="PHONE"),
    QueryState(search_term="fashion", page_size=2, page_number=2),
    QueryState(search_term="zzz"),
    QueryState(filters=[("price", FilterSpec.between(50, 150))]),
    QueryState(filters=[("price", FilterSpec.between(None, 99))]),
    QueryState(filters=[("price", FilterSpec.between(199, None))]),
    QueryState(filters=[("price", FilterSpec.greater_than(199))]),
    QueryState(filters=[("price", FilterSpec.smaller_than(49))]),
    QueryState(filters=[("name", FilterSpec.value_match("SH"))]),
    QueryState(filters=[("category", FilterSpec.options({"Electronics": True, "Fashion": True}))]),
    QueryState(filters=[("category", FilterSpec.options({"Electronics": False, "Fashion": False}))]),
    QueryState(filters=[("price", FilterSpec.options({"79": True, "149.0": True, "999": False}))]),
    QueryState(filters=[("colour", FilterSpec.value_match("red"))]),
    QueryState(
        search_term="e",
        filters=[
            ("category", FilterSpec.selecting(["Electronics", "Fashion"], ["Fashion"])),
            ("price", FilterSpec.between(20, 150)),
        ],
        page_size=2,
        page_number=2,
    ),
]


@pytest.fixture
def engines(static_source):
    return InMemoryFilteringStrategy(static_source), RemoteFilteringStrategy(static_source)


@pytest.mark.asyncio
@pytest.mark.parametrize("state", STATES)
async def test_engines_agree(engines, state):
    in_memory, remote = engines

    local = await in_memory.apply_and_paginate(state)
    delegated = await remote.apply_and_paginate(state)

    assert [p.id for p in local.items] == [p.id for p in delegated.items]
    assert local.total_items == delegated.total_items
