"""
Product Data Source Package

Contains the abstract data source interface and its static, Neo4j and HTTP
implementations.
"""

from .base import ProductDataSource
from .http_source import HttpProductDataSource
from .neo4j_source import Neo4jProductDataSource
from .query_builder import CatalogQueryBuilder
from .static_source import StaticProductDataSource

__all__ = [
    "ProductDataSource",
    "HttpProductDataSource",
    "Neo4jProductDataSource",
    "CatalogQueryBuilder",
    "StaticProductDataSource",
]
