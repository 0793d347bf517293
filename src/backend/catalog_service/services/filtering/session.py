"""
Catalog Browse Session

Owns the QueryState of one browsing user and turns user intents (search
typed, filter toggled, page clicked) into filtering calls. Results are
numbered as they are requested; only the newest request may update the
session, older ones that finish late are dropped.
"""

import logging
import uuid
from collections import OrderedDict
from typing import Iterable, List, Optional

from catalog_service.exceptions import CatalogError
from catalog_service.models.filters import FilterInput, FilterSpec, QueryState
from catalog_service.models.product import PageResult
from .filtering_service import FilteringService
from .pagination import total_pages, validate_page_request

logger = logging.getLogger(__name__)


class CatalogBrowseSession:
    """
    QueryState lifecycle for one browse session.

    Changing the search term, the filter set or the page size starts again
    from page 1; changing the page keeps everything else.
    """

    def __init__(
        self,
        filtering_service: FilteringService,
        page_size: int = 10,
        session_id: Optional[str] = None,
    ):
        validate_page_request(1, page_size)
        self.filtering_service = filtering_service
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self._state = QueryState(page_size=page_size)
        self._page: Optional[PageResult] = None
        self._issued = 0

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def page(self) -> Optional[PageResult]:
        """Last PageResult accepted by the session"""
        return self._page

    @property
    def current_page(self) -> int:
        return self._state.page_number

    @property
    def page_size(self) -> int:
        return self._state.page_size

    @property
    def total_pages(self) -> int:
        if self._page is None:
            return 0
        return total_pages(self._page.total_items, self._state.page_size)

    async def refresh(self) -> Optional[PageResult]:
        """
        Issue the current QueryState.

        Returns:
            The PageResult, or None if a newer request was issued meanwhile

        Raises:
            CatalogError: the request failed and is still the latest one
        """
        self._issued += 1
        sequence = self._issued
        state = self._state

        try:
            result = await self.filtering_service.apply_and_paginate(state)
        except CatalogError:
            if sequence != self._issued:
                logger.debug(f"[{self.session_id}] Dropping failure of superseded request #{sequence}")
                return None
            raise

        if sequence != self._issued:
            logger.debug(
                f"[{self.session_id}] Discarding superseded result #{sequence} (latest #{self._issued})"
            )
            return None

        self._page = result
        return result

    async def _update(self, state: QueryState) -> Optional[PageResult]:
        self._state = state
        return await self.refresh()

    async def set_search_term(self, search_term: Optional[str]) -> Optional[PageResult]:
        return await self._update(self._state.with_search_term(search_term))

    async def set_filter(self, field_key: str, spec: FilterSpec) -> Optional[PageResult]:
        return await self._update(self._state.with_filter(field_key, spec))

    async def set_filters(self, filters: Iterable[FilterInput]) -> Optional[PageResult]:
        return await self._update(self._state.with_filters(filters))

    async def remove_filter(self, field_key: str) -> Optional[PageResult]:
        return await self._update(self._state.without_filter(field_key))

    async def clear_filters(self) -> Optional[PageResult]:
        return await self._update(self._state.with_filters([]))

    async def set_page_size(self, page_size: int) -> Optional[PageResult]:
        validate_page_request(1, page_size)
        return await self._update(self._state.with_page_size(page_size))

    async def set_page(self, page_number: int) -> Optional[PageResult]:
        validate_page_request(page_number, self._state.page_size)
        return await self._update(self._state.with_page(page_number))

    async def set_query(
        self,
        search_term: Optional[str],
        filters: Iterable[FilterInput],
        page_number: int = 1,
        page_size: Optional[int] = None,
    ) -> Optional[PageResult]:
        """Replace search term, filters and page in one step (a full search form submit)"""
        size = self._state.page_size if page_size is None else page_size
        validate_page_request(page_number, size)
        state = QueryState(
            search_term=search_term or "",
            filters=list(filters),
            page_number=page_number,
            page_size=size,
        )
        return await self._update(state)

    async def go_to_page(self, page_number: int, page_size: Optional[int] = None) -> Optional[PageResult]:
        """Move through the current view, optionally with a new page size"""
        state = self._state
        if page_size is not None and page_size != state.page_size:
            validate_page_request(page_number, page_size)
            state = state.with_page_size(page_size)
        validate_page_request(page_number, state.page_size)
        return await self._update(state.with_page(page_number))

    async def reselect_strategy(self) -> Optional[PageResult]:
        """Re-run strategy selection, then re-issue the current query on the new engine"""
        count = await self.filtering_service.switch_strategy()
        logger.info(
            f"[{self.session_id}] Strategy re-evaluated: {self.filtering_service.active_kind.value} "
            f"(count={count}), replaying page {self._state.page_number}"
        )
        return await self.refresh()

    def available_options(self, field_key: str) -> List[str]:
        return self.filtering_service.available_options(field_key)


class BrowseSessionRegistry:
    """
    In-process browse sessions keyed by the client's session id.

    Each id gets its own CatalogBrowseSession so concurrent clients never
    page through each other's search. Requests without an id get a fresh,
    unregistered session. The least recently used session is evicted once
    ``max_sessions`` is reached.
    """

    def __init__(
        self,
        filtering_service: FilteringService,
        default_page_size: int = 10,
        max_sessions: int = 1000,
    ):
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be positive, got {max_sessions}")
        self.filtering_service = filtering_service
        self.default_page_size = default_page_size
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, CatalogBrowseSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def session_for(self, session_id: Optional[str]) -> CatalogBrowseSession:
        if not session_id:
            return CatalogBrowseSession(self.filtering_service, page_size=self.default_page_size)

        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            return session

        session = CatalogBrowseSession(
            self.filtering_service,
            page_size=self.default_page_size,
            session_id=session_id,
        )
        self._sessions[session_id] = session
        if len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.debug(f"Evicted browse session {evicted}")
        logger.debug(f"Started browse session {session_id} ({len(self._sessions)} active)")
        return session
