"""
Unit tests for CatalogBrowseSession
Tests QueryState transitions and last-request-wins ordering
"""

import asyncio

import pytest

from catalog_service.exceptions import InvalidPageNumber, InvalidPageSize, RemoteQueryFailed
from catalog_service.models.filters import FilterSpec, QueryState
from catalog_service.models.product import PageResult
from catalog_service.services.filtering.filtering_service import FilteringService, StrategyKind
from catalog_service.services.filtering.session import BrowseSessionRegistry, CatalogBrowseSession


@pytest.fixture
def service(stub_source):
    return FilteringService.from_data_source(stub_source)


@pytest.fixture
def session(service):
    return CatalogBrowseSession(service, page_size=5)


class GatedFilteringService:
    """Filtering service double whose calls finish only when released"""

    def __init__(self):
        self.gates = []
        self.active_kind = StrategyKind.IN_MEMORY

    async def apply_and_paginate(self, state: QueryState) -> PageResult:
        gate = asyncio.Event()
        self.gates.append((gate, state))
        await gate.wait()
        if state.search_term == "explode":
            raise RemoteQueryFailed("backend error")
        return PageResult(items=[], total_items=len(state.search_term))


class TestStateTransitions:

    @pytest.mark.asyncio
    async def test_initial_state(self, session):
        assert session.current_page == 1
        assert session.page_size == 5
        assert session.page is None
        assert session.total_pages == 0

    @pytest.mark.asyncio
    async def test_refresh_stores_page(self, session):
        result = await session.refresh()
        assert result.total_items == 10
        assert session.page is result
        assert session.total_pages == 2

    @pytest.mark.asyncio
    async def test_set_page_keeps_search_and_filters(self, session):
        await session.set_filter("category", FilterSpec.options({"Fashion": True}))
        await session.set_search_term("s")
        await session.set_page(2)

        assert session.current_page == 2
        assert session.state.search_term == "s"
        assert session.state.filter_for("category") is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("change", [
        lambda s: s.set_search_term("phone"),
        lambda s: s.set_filter("price", FilterSpec.between(0, 500)),
        lambda s: s.remove_filter("category"),
        lambda s: s.clear_filters(),
        lambda s: s.set_page_size(2),
        lambda s: s.set_filters([("category", FilterSpec.options({"Fashion": True}))]),
    ])
    async def test_changes_reset_to_first_page(self, session, change):
        await session.set_filter("category", FilterSpec.options({"Electronics": True}))
        await session.set_page(2)
        await change(session)
        assert session.current_page == 1

    @pytest.mark.asyncio
    async def test_set_filter_replaces_in_place(self, session):
        await session.set_filter("category", FilterSpec.options({"Electronics": True}))
        await session.set_filter("price", FilterSpec.between(100, None))
        await session.set_filter("category", FilterSpec.options({"Fashion": True}))

        assert [e.key for e in session.state.filters] == ["category", "price"]
        assert session.state.filter_for("category").selected_options() == ["Fashion"]
        assert session.page.total_items == 1  # Watch

    @pytest.mark.asyncio
    async def test_invalid_input_leaves_state_untouched(self, session):
        await session.set_page(2)
        with pytest.raises(InvalidPageNumber):
            await session.set_page(0)
        with pytest.raises(InvalidPageSize):
            await session.set_page_size(0)
        assert session.current_page == 2
        assert session.page_size == 5

    @pytest.mark.asyncio
    async def test_set_query_replaces_whole_state(self, session):
        await session.set_filter("price", FilterSpec.between(500, None))
        await session.set_page(2)

        result = await session.set_query("phone", [], page_number=1, page_size=10)

        assert session.state == QueryState(search_term="phone", page_size=10)
        assert result.total_items == 2

    @pytest.mark.asyncio
    async def test_go_to_page_keeps_query(self, session):
        await session.set_query("", [("category", FilterSpec.options({"Fashion": True}))])

        result = await session.go_to_page(2, page_size=2)

        assert session.current_page == 2
        assert session.page_size == 2
        assert session.state.filter_for("category") is not None
        assert result.total_items == 5
        assert len(result.items) == 2

    @pytest.mark.asyncio
    async def test_go_to_invalid_page_leaves_state_untouched(self, session):
        await session.set_search_term("o")
        with pytest.raises(InvalidPageNumber):
            await session.go_to_page(0)
        with pytest.raises(InvalidPageSize):
            await session.set_query("x", [], page_size=0)
        assert session.state.search_term == "o"

    def test_invalid_initial_page_size(self, service):
        with pytest.raises(InvalidPageSize):
            CatalogBrowseSession(service, page_size=0)

    @pytest.mark.asyncio
    async def test_available_options(self, session, service):
        await service.evaluate_and_select()
        assert session.available_options("category") == ["Electronics", "Fashion"]


class TestReselect:

    @pytest.mark.asyncio
    async def test_reselect_replays_current_query(self, session, stub_source, service):
        await service.evaluate_and_select()
        await session.set_search_term("o")
        await session.set_page(2)
        stub_source.reported_count = 1000

        result = await session.reselect_strategy()

        assert service.active_kind == StrategyKind.REMOTE
        replayed = stub_source.payloads[-1]
        assert replayed.search_term == "o"
        assert replayed.current_page == 2
        assert session.page is result


class TestLastRequestWins:

    @pytest.mark.asyncio
    async def test_late_result_is_discarded(self):
        gated = GatedFilteringService()
        session = CatalogBrowseSession(gated, page_size=10)

        first = asyncio.create_task(session.set_search_term("ph"))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.set_search_term("phone"))
        await asyncio.sleep(0)
        assert len(gated.gates) == 2

        # Newest finishes first, then the stale one
        gated.gates[1][0].set()
        newest = await second
        gated.gates[0][0].set()
        stale = await first

        assert newest.total_items == len("phone")
        assert stale is None
        assert session.page is newest
        assert session.state.search_term == "phone"

    @pytest.mark.asyncio
    async def test_stale_failure_is_dropped(self):
        gated = GatedFilteringService()
        session = CatalogBrowseSession(gated, page_size=10)

        failing = asyncio.create_task(session.set_search_term("explode"))
        await asyncio.sleep(0)
        latest = asyncio.create_task(session.set_search_term("ok"))
        await asyncio.sleep(0)

        gated.gates[0][0].set()
        assert await failing is None
        gated.gates[1][0].set()
        assert (await latest).total_items == 2

    @pytest.mark.asyncio
    async def test_latest_failure_propagates(self):
        gated = GatedFilteringService()
        session = CatalogBrowseSession(gated, page_size=10)

        task = asyncio.create_task(session.set_search_term("explode"))
        await asyncio.sleep(0)
        gated.gates[0][0].set()

        with pytest.raises(RemoteQueryFailed):
            await task
        assert session.page is None


class TestRegistry:

    def test_same_id_returns_same_session(self, service):
        registry = BrowseSessionRegistry(service, default_page_size=7)
        first = registry.session_for("alice")
        assert registry.session_for("alice") is first
        assert first.session_id == "alice"
        assert first.page_size == 7

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self, service):
        registry = BrowseSessionRegistry(service)
        await registry.session_for("alice").set_search_term("phone")

        result = await registry.session_for("bob").go_to_page(1)

        assert result.total_items == 10
        assert registry.session_for("alice").state.search_term == "phone"

    def test_missing_id_is_not_registered(self, service):
        registry = BrowseSessionRegistry(service)
        assert registry.session_for(None) is not registry.session_for(None)
        assert len(registry) == 0

    def test_least_recently_used_is_evicted(self, service):
        registry = BrowseSessionRegistry(service, max_sessions=2)
        registry.session_for("a")
        registry.session_for("b")
        registry.session_for("a")
        registry.session_for("c")

        assert "a" in registry
        assert "b" not in registry
        assert len(registry) == 2

    def test_invalid_max_sessions(self, service):
        with pytest.raises(ValueError):
            BrowseSessionRegistry(service, max_sessions=0)
