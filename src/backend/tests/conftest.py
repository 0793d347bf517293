"""
Pytest configuration and shared fixtures
Provides common test fixtures for all test modules
"""

import pytest
import sys
import os
import json
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Set

# Add backend directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep test runs from writing into the project logs/ directory
os.environ.setdefault("LOG_FILE_PATH", str(Path(tempfile.gettempdir()) / "catalog-service-tests.log"))

from catalog_service.exceptions import DataSourceUnavailable, RemoteQueryFailed
from catalog_service.models.filters import FilterRequestPayload
from catalog_service.models.product import Product, QueryResponse
from catalog_service.services.config.configuration_service import ConfigurationService
from catalog_service.services.datasource.static_source import StaticProductDataSource


PACKAGE_CONFIG_DIR = Path(__file__).parent.parent / "catalog_service" / "config"

SAMPLE_PRODUCTS: List[Dict] = [
    {"id": 1, "name": "Laptop", "category": "Electronics", "price": 999, "description": "High-end laptop"},
    {"id": 2, "name": "Phone", "category": "Electronics", "price": 699, "description": "Smartphone"},
    {"id": 3, "name": "Shoes", "category": "Fashion", "price": 99, "description": "Running shoes"},
    {"id": 4, "name": "T-shirt", "category": "Fashion", "price": 19, "description": "Cotton t-shirt"},
    {"id": 5, "name": "Sunglasses", "category": "Fashion", "price": 49, "description": "UV protection"},
    {"id": 6, "name": "Headphones", "category": "Electronics", "price": 199, "description": "Noise-cancelling"},
    {"id": 7, "name": "Backpack", "category": "Fashion", "price": 79, "description": "Waterproof"},
    {"id": 8, "name": "Watch", "category": "Fashion", "price": 149, "description": "Analog watch"},
    {"id": 9, "name": "Camera", "category": "Electronics", "price": 299, "description": "DSLR camera"},
    {"id": 10, "name": "Tablet", "category": "Electronics", "price": 399, "description": "Large screen"},
]


class StubDataSource(StaticProductDataSource):
    """
    Static data source with call counters, an overridable count and
    failure injection, for exercising the engines and the selector.
    """

    source_type = "stub"

    def __init__(self, products, reported_count: Optional[int] = None):
        super().__init__(products=products)
        self.reported_count = reported_count
        self.calls: Dict[str, int] = {"fetch_all": 0, "count": 0, "query": 0}
        self.payloads: List[FilterRequestPayload] = []
        self.fail_on: Set[str] = set()
        self.canned_response: Optional[QueryResponse] = None

    def replace_products(self, products) -> None:
        """Simulate a bulk catalog change behind the data source"""
        self._products = [Product.model_validate(p) for p in products]
        self.reported_count = None

    async def fetch_all(self) -> List[Product]:
        self.calls["fetch_all"] += 1
        if "fetch_all" in self.fail_on:
            raise DataSourceUnavailable("catalog fetch unavailable")
        return await super().fetch_all()

    async def count(self) -> int:
        self.calls["count"] += 1
        if "count" in self.fail_on:
            raise DataSourceUnavailable("catalog count unavailable")
        if self.reported_count is not None:
            return self.reported_count
        return await super().count()

    async def query(self, payload: FilterRequestPayload) -> QueryResponse:
        self.calls["query"] += 1
        self.payloads.append(payload)
        if "query" in self.fail_on:
            raise RemoteQueryFailed("query round-trip failed")
        if self.canned_response is not None:
            return self.canned_response
        return await super().query(payload)


@pytest.fixture
def sample_product_dicts() -> List[Dict]:
    """Raw sample catalog (10 products, 2 categories)"""
    return [dict(p) for p in SAMPLE_PRODUCTS]


@pytest.fixture
def sample_products(sample_product_dicts) -> List[Product]:
    """Sample catalog as Product models"""
    return [Product.model_validate(p) for p in sample_product_dicts]


@pytest.fixture
def static_source(sample_products) -> StaticProductDataSource:
    """Static data source over the sample catalog"""
    return StaticProductDataSource(products=sample_products)


@pytest.fixture
def stub_source(sample_products) -> StubDataSource:
    """Instrumented data source over the sample catalog"""
    return StubDataSource(sample_products)


@pytest.fixture
def make_stub_source():
    """Factory for instrumented data sources: make_stub_source(products, reported_count=None)"""
    return StubDataSource


@pytest.fixture
def catalog_config() -> Dict:
    """Valid catalog configuration"""
    return {
        "version": "1.0.0",
        "description": "Test catalog configuration",
        "filtering": {"strategy_threshold": 100},
        "pagination": {
            "default_page_size": 10,
            "page_size_options": [5, 10, 20, 50],
            "max_page_size": 200
        },
        "data_source": {
            "type": "static",
            "static_path": "data/products.json",
            "http_base_url": "http://catalog.test",
            "timeout_seconds": 5,
            "neo4j_label": "Product"
        }
    }


@pytest.fixture
def test_config_dir(catalog_config):
    """
    Create temporary config directory with the catalog configuration and
    the packaged JSON schemas
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        config_dir = Path(tmpdir)
        (config_dir / "catalog_config.json").write_text(
            json.dumps(catalog_config, indent=2),
            encoding="utf-8"
        )
        shutil.copytree(PACKAGE_CONFIG_DIR / "schemas", config_dir / "schemas")
        yield config_dir


@pytest.fixture
def config_service(test_config_dir):
    """
    Create ConfigurationService with test config directory
    Function-scoped fixture, new instance per test
    """
    service = ConfigurationService(str(test_config_dir))
    service.load_config.cache_clear()
    return service


# Auto-use fixtures
@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """
    Reset singleton instances and environment overrides before each test
    Ensures test isolation
    """
    import catalog_service.services.config.configuration_service as config_module
    import catalog_service.services.config.config_validator as validator_module

    for name in ("CATALOG_DATA_SOURCE", "CATALOG_STRATEGY_THRESHOLD", "CATALOG_HTTP_BASE_URL"):
        monkeypatch.delenv(name, raising=False)

    config_module._config_service = None
    validator_module._validator = None

    yield

    config_module._config_service = None
    validator_module._validator = None
