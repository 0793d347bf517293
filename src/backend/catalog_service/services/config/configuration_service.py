"""
Configuration Service
Centralized configuration management with caching and environment overrides
"""

import json
import os
from functools import lru_cache
from typing import Dict, List, Any, Optional
import logging
from pathlib import Path

from catalog_service.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CATALOG_CONFIG = "catalog_config"

DEFAULT_STRATEGY_THRESHOLD = 100
DEFAULT_PAGE_SIZE = 10
DEFAULT_PAGE_SIZE_OPTIONS = [5, 10, 20, 50]
DEFAULT_MAX_PAGE_SIZE = 200


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"Environment variable {name} must be an integer, got {raw!r}", cause=e) from e


class ConfigurationService:
    """
    Centralized service for loading and caching catalog configuration

    Loads configurations from JSON files in the config directory with:
    - LRU caching
    - Environment variable overrides (CATALOG_*, NEO4J_*)
    - Hot-reload capability
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigurationService

        Args:
            config_dir: Path to configuration directory. If None, uses catalog_service/config
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent.parent.parent / "config"
        else:
            self.config_dir = Path(config_dir)

        logger.info(f"ConfigurationService initialized with config_dir: {self.config_dir}")

    @property
    def package_dir(self) -> Path:
        """Directory relative data paths in the config resolve against"""
        return Path(__file__).parent.parent.parent

    @lru_cache(maxsize=32)
    def load_config(self, config_name: str) -> Dict[str, Any]:
        """
        Load configuration from JSON file with caching

        Args:
            config_name: Name of config file (without .json extension)

        Returns:
            Dict containing configuration data

        Raises:
            ConfigurationError: If the file is missing or is not valid JSON
        """
        config_path = self.config_dir / f"{config_name}.json"

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except FileNotFoundError as e:
            logger.error(f"Config file not found: {config_path}")
            raise ConfigurationError(f"Config file not found: {config_path}", cause=e) from e
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {config_name}.json: {e}")
            raise ConfigurationError(f"Invalid JSON in {config_name}.json: {e}", cause=e) from e

        logger.info(f"Loaded config: {config_name} (version: {config.get('version', 'N/A')})")
        return config

    def reload_config(self, config_name: str) -> Dict[str, Any]:
        """
        Force reload of configuration (clears cache)

        Args:
            config_name: Name of config file to reload

        Returns:
            Freshly loaded configuration
        """
        self.load_config.cache_clear()
        logger.info(f"Cache cleared, reloading config: {config_name}")
        return self.load_config(config_name)

    def get_catalog_config(self) -> Dict[str, Any]:
        """Get catalog configuration"""
        return self.load_config(CATALOG_CONFIG)

    def get_strategy_threshold(self) -> int:
        """
        Catalog size above which the remote strategy is selected

        CATALOG_STRATEGY_THRESHOLD overrides filtering.strategy_threshold.
        """
        override = _env_int("CATALOG_STRATEGY_THRESHOLD")
        if override is not None:
            return override
        filtering = self.get_catalog_config().get("filtering", {})
        return filtering.get("strategy_threshold", DEFAULT_STRATEGY_THRESHOLD)

    def get_pagination_config(self) -> Dict[str, Any]:
        """Get pagination configuration"""
        return self.get_catalog_config().get("pagination", {})

    def get_default_page_size(self) -> int:
        return self.get_pagination_config().get("default_page_size", DEFAULT_PAGE_SIZE)

    def get_page_size_options(self) -> List[int]:
        return self.get_pagination_config().get("page_size_options", DEFAULT_PAGE_SIZE_OPTIONS)

    def get_max_page_size(self) -> int:
        return self.get_pagination_config().get("max_page_size", DEFAULT_MAX_PAGE_SIZE)

    def get_data_source_config(self) -> Dict[str, Any]:
        """
        Get data source configuration with environment overrides applied

        Returns:
            Dict with type, static_path, http_base_url, timeout_seconds,
            neo4j_label, neo4j_uri, neo4j_username, neo4j_password
        """
        config = dict(self.get_catalog_config().get("data_source", {}))
        config.setdefault("type", "static")

        env_type = os.getenv("CATALOG_DATA_SOURCE")
        if env_type:
            config["type"] = env_type.strip().lower()

        env_base_url = os.getenv("CATALOG_HTTP_BASE_URL")
        if env_base_url:
            config["http_base_url"] = env_base_url

        config["neo4j_uri"] = os.getenv("NEO4J_URI", config.get("neo4j_uri", "bolt://localhost:7687"))
        config["neo4j_username"] = os.getenv("NEO4J_USERNAME", config.get("neo4j_username", "neo4j"))
        config["neo4j_password"] = os.getenv("NEO4J_PASSWORD", config.get("neo4j_password", ""))
        return config

    def resolve_static_path(self, static_path: Optional[str]) -> Optional[Path]:
        """Resolve a configured catalog path; relative paths are package-relative"""
        if not static_path:
            return None
        path = Path(static_path)
        if not path.is_absolute():
            path = self.package_dir / path
        return path

    def validate_config(self, config_name: str) -> bool:
        """
        Validate configuration file

        Args:
            config_name: Name of config to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            config = self.load_config(config_name)
        except ConfigurationError as e:
            logger.error(f"Config validation failed for {config_name}: {e}")
            return False

        if "version" not in config:
            logger.warning(f"Config {config_name} missing version field")

        logger.info(f"Config {config_name} validated successfully")
        return True


# Global singleton instance
_config_service: Optional[ConfigurationService] = None


def get_config_service() -> ConfigurationService:
    """
    Get global ConfigurationService singleton instance

    Returns:
        ConfigurationService instance
    """
    global _config_service
    if _config_service is None:
        _config_service = ConfigurationService()
    return _config_service


def init_config_service(config_dir: Optional[str] = None) -> ConfigurationService:
    """
    Initialize global ConfigurationService with custom config directory

    Args:
        config_dir: Path to configuration directory

    Returns:
        ConfigurationService instance
    """
    global _config_service
    _config_service = ConfigurationService(config_dir)
    logger.info("Global ConfigurationService initialized")
    return _config_service
