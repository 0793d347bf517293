"""
Integration tests for the catalog API
Drives the FastAPI app end to end over the instrumented sample catalog
"""

import pytest

SEARCH = "/api/v1/catalog/products/search"
PAGE = "/api/v1/catalog/products/page"


class TestSearch:

    @pytest.mark.asyncio
    async def test_unfiltered_search_uses_default_page_size(self, api_client):
        response = await api_client.post(SEARCH, json={})

        assert response.status_code == 200
        data = response.json()
        assert data["totalItems"] == 10
        assert data["totalPages"] == 1
        assert data["pageNumber"] == 1
        assert data["pageSize"] == 10
        assert data["strategy"] == "in_memory"
        assert data["products"][0]["name"] == "Laptop"

    @pytest.mark.asyncio
    async def test_search_with_filters_and_paging(self, api_client):
        response = await api_client.post(SEARCH, json={
            "searchTerm": "",
            "filters": [
                {"key": "price", "filter": {"type": "range", "range": {"min": 50, "max": 150}}}
            ],
            "pageNumber": 2,
            "pageSize": 2,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["totalItems"] == 3
        assert data["totalPages"] == 2
        assert [p["name"] for p in data["products"]] == ["Watch"]

    @pytest.mark.asyncio
    async def test_multiselect_filter(self, api_client):
        response = await api_client.post(SEARCH, json={
            "filters": [
                {
                    "key": "category",
                    "filter": {"type": "multiselect", "multiselect": [["Electronics", False], ["Fashion", True]]},
                }
            ],
        })
        assert response.json()["totalItems"] == 5

    @pytest.mark.asyncio
    async def test_no_matches_is_empty_page(self, api_client):
        response = await api_client.post(SEARCH, json={"searchTerm": "submarine"})
        assert response.status_code == 200
        assert response.json()["products"] == []
        assert response.json()["totalPages"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"pageNumber": 0},
        {"pageSize": 0},
        {"pageSize": 500},
    ])
    async def test_invalid_page_request_is_400(self, api_client, body):
        response = await api_client.post(SEARCH, json=body)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_page_through_current_view(self, api_client):
        headers = {"X-Browse-Session-ID": "browse-1"}
        await api_client.post(SEARCH, json={"searchTerm": "e", "pageSize": 3}, headers=headers)

        response = await api_client.get(PAGE, params={"page_number": 2}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["pageNumber"] == 2
        assert data["pageSize"] == 3
        assert data["searchTerm"] == "e"
        assert len(data["products"]) == 3

    @pytest.mark.asyncio
    async def test_browse_sessions_do_not_share_views(self, api_client):
        alice = {"X-Browse-Session-ID": "alice"}
        bob = {"X-Browse-Session-ID": "bob"}
        await api_client.post(SEARCH, json={"searchTerm": "phone"}, headers=alice)

        bob_page = await api_client.get(PAGE, params={"page_number": 1, "page_size": 10}, headers=bob)
        alice_page = await api_client.get(PAGE, params={"page_number": 1}, headers=alice)

        assert len(bob_page.json()["products"]) == 10
        assert bob_page.json()["searchTerm"] == ""
        assert [p["name"] for p in alice_page.json()["products"]] == ["Phone", "Headphones"]

    @pytest.mark.asyncio
    async def test_page_without_session_is_unfiltered(self, api_client):
        await api_client.post(SEARCH, json={"searchTerm": "phone"})

        response = await api_client.get(PAGE, params={"page_number": 1})

        assert response.json()["totalItems"] == 10

    @pytest.mark.asyncio
    async def test_page_size_over_maximum_is_400(self, api_client):
        response = await api_client.get(PAGE, params={"page_number": 1, "page_size": 500})
        assert response.status_code == 400


class TestCatalogEndpoints:

    @pytest.mark.asyncio
    async def test_list_products(self, api_client):
        response = await api_client.get("/api/v1/catalog/products")
        assert response.status_code == 200
        products = response.json()
        assert len(products) == 10
        assert "imageUrl" in products[0]

    @pytest.mark.asyncio
    async def test_count(self, api_client):
        response = await api_client.get("/api/v1/catalog/products/count")
        assert response.json() == {"count": 10}

    @pytest.mark.asyncio
    async def test_options(self, api_client):
        response = await api_client.get("/api/v1/catalog/products/options/category")
        assert response.json() == {"field": "category", "options": ["Electronics", "Fashion"]}

    @pytest.mark.asyncio
    async def test_count_failure_is_503(self, api_client, stub_source):
        stub_source.fail_on.add("count")
        response = await api_client.get("/api/v1/catalog/products/count")
        assert response.status_code == 503


class TestStrategy:

    @pytest.mark.asyncio
    async def test_get_strategy(self, api_client, stub_source):
        response = await api_client.get("/api/v1/catalog/strategy")

        data = response.json()
        assert data["strategy"] == "in_memory"
        assert data["threshold"] == 100
        assert data["count"] == 10
        assert data["dataSource"] == stub_source.get_name()

    @pytest.mark.asyncio
    async def test_switch_to_remote(self, api_client, stub_source):
        stub_source.reported_count = 5000

        response = await api_client.post("/api/v1/catalog/strategy/switch")

        data = response.json()
        assert data["previousStrategy"] == "in_memory"
        assert data["strategy"] == "remote"
        assert data["count"] == 5000

        search = await api_client.post(SEARCH, json={"searchTerm": "phone"})
        assert search.json()["strategy"] == "remote"
        assert stub_source.calls["query"] == 1

    @pytest.mark.asyncio
    async def test_remote_query_failure_is_502(self, api_client, stub_source):
        stub_source.reported_count = 5000
        await api_client.post("/api/v1/catalog/strategy/switch")
        stub_source.fail_on.add("query")

        response = await api_client.post(SEARCH, json={"searchTerm": "phone"})

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_switch_failure_is_503(self, api_client, stub_source):
        stub_source.fail_on.add("count")
        response = await api_client.post("/api/v1/catalog/strategy/switch")
        assert response.status_code == 503


class TestServiceSurface:

    @pytest.mark.asyncio
    async def test_catalog_without_data_source_is_503(self, bare_client, data_source_factory):
        response = await bare_client.post(SEARCH, json={})
        assert response.status_code == 503
        assert data_source_factory.attempts == 1

    @pytest.mark.asyncio
    async def test_catalog_starts_once_data_source_is_reachable(self, bare_client, data_source_factory, stub_source):
        assert (await bare_client.post("/api/v1/catalog/strategy/switch")).status_code == 503

        data_source_factory.source = stub_source
        response = await bare_client.post("/api/v1/catalog/strategy/switch")

        assert response.status_code == 200
        assert response.json()["strategy"] == "in_memory"
        assert response.json()["count"] == 10
        search = await bare_client.post(SEARCH, json={"searchTerm": "phone"})
        assert search.json()["totalItems"] == 2

        health = (await bare_client.get("/health")).json()
        assert health["status"] == "healthy"
        assert health["data_source"]["available"] is True
        # no reconnection once started
        assert data_source_factory.attempts == 2

    @pytest.mark.asyncio
    async def test_health_reports_unavailable_data_source(self, bare_client):
        response = await bare_client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["data_source"]["available"] is False

    @pytest.mark.asyncio
    async def test_config_health(self, bare_client):
        response = await bare_client.get("/api/v1/health/config")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_correlation_and_session_headers_echoed(self, api_client):
        response = await api_client.get(
            "/api/v1/catalog/products/count",
            headers={"X-Correlation-ID": "corr-123", "X-Browse-Session-ID": "browse-9"},
        )
        assert response.headers["X-Correlation-ID"] == "corr-123"
        assert response.headers["X-Browse-Session-ID"] == "browse-9"

    @pytest.mark.asyncio
    async def test_correlation_id_generated(self, api_client):
        response = await api_client.get("/")
        assert response.headers["X-Correlation-ID"]
