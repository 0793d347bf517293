"""
Catalog API Endpoints
FastAPI router exposing the filtering service: listing, counting, filtered
search with pagination, and strategy inspection/switching.

GET  /api/v1/catalog/products                  - full product list of the active engine
GET  /api/v1/catalog/products/count            - catalog size
POST /api/v1/catalog/products/search           - search + filters + page (sets the browse session's view)
GET  /api/v1/catalog/products/page             - page through the browse session's current view
GET  /api/v1/catalog/products/options/{field}  - distinct values for multiselect options
GET  /api/v1/catalog/strategy                  - active strategy and threshold
POST /api/v1/catalog/strategy/switch           - re-evaluate strategy from catalog size
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from ...exceptions import (
    CatalogError,
    DataSourceUnavailable,
    InvalidPageRequest,
    InvalidPageSize,
    RemoteQueryFailed,
)
from ...models.filters import FilterEntry
from ...models.product import Product
from ...services.config.configuration_service import get_config_service
from ...services.filtering.filtering_service import FilteringService
from ...services.filtering.pagination import total_pages
from ...services.filtering.session import BrowseSessionRegistry, CatalogBrowseSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])


# Dependency injection placeholder (overridden in main.py)
def get_filtering_service_dep() -> FilteringService:
    """Dependency injection placeholder for the filtering service - overridden in main.py"""
    raise RuntimeError("Filtering service dependency not initialized")


def get_browse_sessions_dep() -> BrowseSessionRegistry:
    """Dependency injection placeholder for the browse session registry - overridden in main.py"""
    raise RuntimeError("Browse session registry dependency not initialized")


def get_browse_session(
    x_browse_session_id: Optional[str] = Header(default=None),
    registry: BrowseSessionRegistry = Depends(get_browse_sessions_dep),
) -> CatalogBrowseSession:
    """Browse session of the calling client, keyed by the X-Browse-Session-ID header"""
    return registry.session_for(x_browse_session_id)


class SearchRequest(BaseModel):
    """Request model for filtered search"""

    model_config = ConfigDict(populate_by_name=True)

    search_term: str = Field(default="", alias="searchTerm")
    filters: List[FilterEntry] = Field(default_factory=list)
    page_number: int = Field(default=1, alias="pageNumber")
    page_size: Optional[int] = Field(default=None, alias="pageSize")


class SearchResponse(BaseModel):
    """Response model for filtered search"""

    model_config = ConfigDict(populate_by_name=True)

    products: List[Product]
    total_items: int = Field(alias="totalItems")
    total_pages: int = Field(alias="totalPages")
    page_number: int = Field(alias="pageNumber")
    page_size: int = Field(alias="pageSize")
    strategy: str


class PageResponse(BaseModel):
    """Response model for paging through the current view"""

    model_config = ConfigDict(populate_by_name=True)

    products: List[Product]
    search_term: str = Field(alias="searchTerm")
    total_items: int = Field(alias="totalItems")
    total_pages: int = Field(alias="totalPages")
    page_number: int = Field(alias="pageNumber")
    page_size: int = Field(alias="pageSize")
    strategy: str


class CountResponse(BaseModel):
    count: int


class OptionsResponse(BaseModel):
    field: str
    options: List[str]


class StrategyResponse(BaseModel):
    """Response model for strategy inspection and switching"""

    model_config = ConfigDict(populate_by_name=True)

    strategy: str
    threshold: int
    count: Optional[int] = None
    previous_strategy: Optional[str] = Field(default=None, alias="previousStrategy")
    data_source: str = Field(alias="dataSource")


def _http_error(e: CatalogError) -> HTTPException:
    """Map the catalog error taxonomy onto HTTP status codes"""
    if isinstance(e, InvalidPageRequest):
        return HTTPException(status_code=400, detail=e.message)
    if isinstance(e, DataSourceUnavailable):
        return HTTPException(status_code=503, detail=e.message)
    if isinstance(e, RemoteQueryFailed):
        return HTTPException(status_code=502, detail=e.message)
    return HTTPException(status_code=500, detail=e.message)


def _superseded(session: CatalogBrowseSession) -> HTTPException:
    logger.info(f"[{session.session_id}] Request superseded by a newer one from the same browse session")
    return HTTPException(status_code=409, detail="Superseded by a newer request of this browse session")


def _resolve_page_size(page_size: Optional[int]) -> int:
    config_service = get_config_service()
    if page_size is None:
        return config_service.get_default_page_size()
    max_page_size = config_service.get_max_page_size()
    if page_size > max_page_size:
        raise InvalidPageSize(f"page_size {page_size} exceeds the maximum of {max_page_size}")
    return page_size


@router.get("/products", response_model=List[Product])
async def list_products(service: FilteringService = Depends(get_filtering_service_dep)):
    """
    Products held by the active engine

    In-memory: the full catalog. Remote: the last page fetched.
    """
    try:
        return await service.get_products()
    except CatalogError as e:
        logger.error(f"Product listing failed: {e}")
        raise _http_error(e) from e


@router.get("/products/count", response_model=CountResponse)
async def count_products(service: FilteringService = Depends(get_filtering_service_dep)):
    """Total catalog size as reported by the data source"""
    try:
        return CountResponse(count=await service.get_products_count())
    except CatalogError as e:
        logger.error(f"Product count failed: {e}")
        raise _http_error(e) from e


@router.post("/products/search", response_model=SearchResponse)
async def search_products(
    request: SearchRequest,
    session: CatalogBrowseSession = Depends(get_browse_session),
):
    """
    Apply search term, filters and pagination in one call

    The query becomes the current view of the caller's browse session
    (X-Browse-Session-ID), which GET /products/page then pages through.

    Example:
        POST /api/v1/catalog/products/search
        {
            "searchTerm": "",
            "filters": [
                {"key": "price", "filter": {"type": "range", "range": {"min": 50, "max": 150}}}
            ],
            "pageNumber": 1,
            "pageSize": 10
        }

        Response:
        {
            "products": [...],
            "totalItems": 3,
            "totalPages": 1,
            "pageNumber": 1,
            "pageSize": 10,
            "strategy": "in_memory"
        }
    """
    try:
        page_size = _resolve_page_size(request.page_size)
        result = await session.set_query(
            request.search_term,
            request.filters,
            request.page_number,
            page_size,
        )
    except CatalogError as e:
        logger.warning(f"Catalog search failed: {e}")
        raise _http_error(e) from e
    if result is None:
        raise _superseded(session)

    return SearchResponse(
        products=result.items,
        total_items=result.total_items,
        total_pages=total_pages(result.total_items, page_size),
        page_number=request.page_number,
        page_size=page_size,
        strategy=session.filtering_service.active_kind.value,
    )


@router.get("/products/page", response_model=PageResponse)
async def page_products(
    page_number: int = Query(default=1),
    page_size: Optional[int] = Query(default=None),
    session: CatalogBrowseSession = Depends(get_browse_session),
):
    """
    Page through the current view (last search/filters) of the caller's browse session

    Without an X-Browse-Session-ID header the view is the unfiltered catalog.
    """
    try:
        size = None if page_size is None else _resolve_page_size(page_size)
        result = await session.go_to_page(page_number, size)
    except CatalogError as e:
        logger.warning(f"Catalog paging failed: {e}")
        raise _http_error(e) from e
    if result is None:
        raise _superseded(session)

    state = session.state
    return PageResponse(
        products=result.items,
        search_term=state.search_term,
        total_items=result.total_items,
        total_pages=total_pages(result.total_items, state.page_size),
        page_number=state.page_number,
        page_size=state.page_size,
        strategy=session.filtering_service.active_kind.value,
    )


@router.get("/products/options/{field_key}", response_model=OptionsResponse)
async def product_options(
    field_key: str,
    service: FilteringService = Depends(get_filtering_service_dep),
):
    """Distinct values of a product field, for building multiselect filters"""
    return OptionsResponse(field=field_key, options=service.available_options(field_key))


@router.get("/strategy", response_model=StrategyResponse)
async def get_strategy(service: FilteringService = Depends(get_filtering_service_dep)):
    """Active filtering strategy and selection threshold"""
    info = service.describe()
    return StrategyResponse(
        strategy=info["strategy"],
        threshold=info["threshold"],
        count=info["last_count"],
        data_source=info["data_source"],
    )


@router.post("/strategy/switch", response_model=StrategyResponse)
async def switch_strategy(service: FilteringService = Depends(get_filtering_service_dep)):
    """
    Re-read the catalog size and select the matching strategy

    The previous query is not replayed; clients re-issue their search.
    """
    previous = service.active_kind.value
    try:
        count = await service.switch_strategy()
    except CatalogError as e:
        logger.error(f"Strategy switch failed: {e}")
        raise _http_error(e) from e

    return StrategyResponse(
        strategy=service.active_kind.value,
        threshold=service.threshold,
        count=count,
        previous_strategy=previous,
        data_source=service.in_memory.data_source.get_name(),
    )
