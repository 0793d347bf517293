"""
Unit test fixtures

Fixtures for unit tests that mock external dependencies.
Unit tests should be fast (< 100ms) and isolated.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_neo4j_session():
    """Mock Neo4j async session; set ``session.run.side_effect`` per test"""
    session = AsyncMock()
    session.run = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def mock_neo4j_driver(mock_neo4j_session):
    """Mock Neo4j AsyncGraphDatabase driver for unit tests"""
    driver = MagicMock()
    driver.session.return_value.__aenter__ = AsyncMock(return_value=mock_neo4j_session)
    driver.session.return_value.__aexit__ = AsyncMock(return_value=False)
    driver.close = AsyncMock()
    return driver


def neo4j_result(records):
    """Mock neo4j AsyncResult returning ``records`` from data()"""
    result = MagicMock()
    result.data = AsyncMock(return_value=records)
    result.single = AsyncMock(return_value=records[0] if records else None)
    return result


@pytest.fixture
def make_neo4j_result():
    return neo4j_result
