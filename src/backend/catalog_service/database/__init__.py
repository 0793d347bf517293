"""
Database package for the catalog service.

Provides the Neo4j driver manager backing the Neo4j product data source.
"""

from .database import (
    Neo4jManager,
    neo4j_manager,
    init_neo4j,
    get_neo4j_driver,
    close_neo4j
)

__all__ = [
    "Neo4jManager",
    "neo4j_manager",
    "init_neo4j",
    "get_neo4j_driver",
    "close_neo4j"
]
