"""
Integration test fixtures

Fixtures for integration tests that drive the FastAPI app over ASGI with a
real filtering service on the static data source.
Integration tests are slower (< 5s) but test actual component interactions.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from catalog_service.exceptions import DataSourceUnavailable
from catalog_service.services.filtering.filtering_service import FilteringService
from catalog_service.services.filtering.session import BrowseSessionRegistry


class DataSourceFactory:
    """Stand-in for create_data_source: unreachable until ``source`` is set"""

    def __init__(self):
        self.source = None
        self.attempts = 0

    async def __call__(self, config_service):
        self.attempts += 1
        if self.source is None:
            raise DataSourceUnavailable("connection refused")
        return self.source


@pytest.fixture
def app():
    from catalog_service.main import app as fastapi_app

    original_overrides = dict(fastapi_app.dependency_overrides)
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    fastapi_app.dependency_overrides.update(original_overrides)


@pytest_asyncio.fixture
async def filtering_service(stub_source):
    """Filtering service over the instrumented sample catalog, strategy already selected"""
    service = FilteringService.from_data_source(stub_source, threshold=100)
    await service.evaluate_and_select()
    return service


@pytest.fixture
def browse_sessions(filtering_service):
    return BrowseSessionRegistry(filtering_service, default_page_size=10)


@pytest_asyncio.fixture
async def api_client(app, filtering_service, browse_sessions):
    """
    HTTP client for API integration testing

    Usage:
        async def test_search(api_client):
            response = await api_client.post("/api/v1/catalog/products/search", json={})
            assert response.status_code == 200
    """
    from catalog_service.api.v1.catalog import get_browse_sessions_dep, get_filtering_service_dep

    app.dependency_overrides[get_filtering_service_dep] = lambda: filtering_service
    app.dependency_overrides[get_browse_sessions_dep] = lambda: browse_sessions

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def data_source_factory(monkeypatch):
    """Fresh application globals with the data source factory replaced"""
    from catalog_service import main

    for name in ("data_source", "filtering_service", "browse_sessions"):
        monkeypatch.setattr(main, name, None)
    factory = DataSourceFactory()
    monkeypatch.setattr(main, "create_data_source", factory)
    return factory


@pytest_asyncio.fixture
async def bare_client(app, data_source_factory):
    """HTTP client against the app with no filtering service started"""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
