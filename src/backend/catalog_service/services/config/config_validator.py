"""
Configuration Validator Service
Validates the catalog configuration against its JSON schema and performs consistency checks
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Tuple, Any, Optional
from jsonschema import validate, ValidationError, SchemaError
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DATA_SOURCE_TYPES = ("static", "neo4j", "http")


@dataclass
class ValidationResult:
    """Result of a validation check"""
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    config_name: str

    def add_error(self, error: str):
        """Add an error message"""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        """Add a warning message"""
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        return {
            "config_name": self.config_name,
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings)
        }


@dataclass
class ValidationReport:
    """Complete validation report for all configs"""
    results: List[ValidationResult]
    overall_valid: bool
    timestamp: str

    @classmethod
    def create(cls, results: List[ValidationResult]):
        """Create report from results"""
        return cls(
            results=results,
            overall_valid=all(r.is_valid for r in results),
            timestamp=datetime.now(timezone.utc).isoformat()
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "overall_valid": self.overall_valid,
            "timestamp": self.timestamp,
            "total_configs": len(self.results),
            "valid_configs": sum(1 for r in self.results if r.is_valid),
            "invalid_configs": sum(1 for r in self.results if not r.is_valid),
            "total_errors": sum(len(r.errors) for r in self.results),
            "total_warnings": sum(len(r.warnings) for r in self.results),
            "results": [r.to_dict() for r in self.results]
        }


class ConfigValidator:
    """
    Configuration validator with JSON schema validation and consistency checks
    """

    def __init__(self, config_dir: Optional[Path] = None, schema_dir: Optional[Path] = None):
        """
        Initialize validator

        Args:
            config_dir: Path to config directory (defaults to catalog_service/config)
            schema_dir: Path to schema directory (defaults to <config_dir>/schemas)
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"
        if schema_dir is None:
            schema_dir = Path(config_dir) / "schemas"

        self.config_dir = Path(config_dir)
        self.schema_dir = Path(schema_dir)

        self._schema_cache: Dict[str, Dict[str, Any]] = {}

        logger.info(f"ConfigValidator initialized - config_dir: {self.config_dir}, schema_dir: {self.schema_dir}")

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Load JSON schema from schemas directory

        Args:
            schema_name: Name of schema file (without .schema.json extension)

        Raises:
            FileNotFoundError: If schema file doesn't exist
            json.JSONDecodeError: If schema is invalid JSON
        """
        if schema_name in self._schema_cache:
            return self._schema_cache[schema_name]

        schema_path = self.schema_dir / f"{schema_name}.schema.json"

        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        self._schema_cache[schema_name] = schema
        logger.debug(f"Loaded schema: {schema_name}")

        return schema

    def load_config(self, config_name: str) -> Dict[str, Any]:
        """
        Load configuration file

        Raises:
            FileNotFoundError: If config file doesn't exist
            json.JSONDecodeError: If config is invalid JSON
        """
        config_path = self.config_dir / f"{config_name}.json"

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def validate_config_schema(self, config_name: str, schema_name: Optional[str] = None) -> ValidationResult:
        """
        Validate config file against its JSON schema

        Args:
            config_name: Name of config file to validate
            schema_name: Name of schema (defaults to config_name)

        Returns:
            ValidationResult with errors and warnings
        """
        if schema_name is None:
            schema_name = config_name

        result = ValidationResult(
            is_valid=True,
            errors=[],
            warnings=[],
            config_name=config_name
        )

        try:
            config = self.load_config(config_name)
            schema = self.load_schema(schema_name)

            validate(instance=config, schema=schema)

            logger.info(f"Config '{config_name}' passed schema validation")

        except FileNotFoundError as e:
            result.add_error(f"File not found: {str(e)}")
        except json.JSONDecodeError as e:
            result.add_error(f"Invalid JSON: {str(e)}")
        except ValidationError as e:
            result.add_error(f"Schema validation failed: {e.message}")
            if e.path:
                result.add_error(f"  Path: {'.'.join(str(p) for p in e.path)}")
        except SchemaError as e:
            result.add_error(f"Invalid schema: {str(e)}")

        return result

    def validate_pagination_consistency(self, config_name: str = "catalog_config") -> ValidationResult:
        """
        Validate pagination settings against each other

        Checks:
        - default_page_size is one of page_size_options
        - No page size option exceeds max_page_size
        - page_size_options has no duplicates

        Returns:
            ValidationResult with consistency errors
        """
        result = ValidationResult(
            is_valid=True,
            errors=[],
            warnings=[],
            config_name="pagination_consistency"
        )

        try:
            pagination = self.load_config(config_name).get("pagination", {})
        except (FileNotFoundError, json.JSONDecodeError) as e:
            result.add_error(f"Consistency check failed: {str(e)}")
            return result

        default_size = pagination.get("default_page_size")
        options = pagination.get("page_size_options", [])
        max_size = pagination.get("max_page_size")

        if default_size is not None and options and default_size not in options:
            result.add_error(
                f"default_page_size {default_size} is not one of page_size_options {options}"
            )

        if max_size is not None:
            too_large = [size for size in options if isinstance(size, int) and size > max_size]
            if too_large:
                result.add_error(f"page_size_options {too_large} exceed max_page_size {max_size}")
            if isinstance(default_size, int) and default_size > max_size:
                result.add_error(f"default_page_size {default_size} exceeds max_page_size {max_size}")

        if len(set(options)) != len(options):
            result.add_warning(f"page_size_options contains duplicates: {options}")

        if result.is_valid:
            logger.info("Pagination consistency validation passed")

        return result

    def validate_data_source_settings(self, config_name: str = "catalog_config") -> ValidationResult:
        """
        Validate that the selected data source has what it needs

        Checks:
        - http requires http_base_url
        - static with an explicit static_path warns when the file is missing
        """
        result = ValidationResult(
            is_valid=True,
            errors=[],
            warnings=[],
            config_name="data_source_settings"
        )

        try:
            data_source = self.load_config(config_name).get("data_source", {})
        except (FileNotFoundError, json.JSONDecodeError) as e:
            result.add_error(f"Data source check failed: {str(e)}")
            return result

        source_type = data_source.get("type", "static")
        if source_type not in DATA_SOURCE_TYPES:
            result.add_error(f"Unknown data source type '{source_type}'")
        elif source_type == "http" and not data_source.get("http_base_url"):
            result.add_error("data_source.http_base_url is required for the http data source")
        elif source_type == "static" and data_source.get("static_path"):
            path = Path(data_source["static_path"])
            if not path.is_absolute():
                path = self.config_dir.parent / path
            if not path.exists():
                result.add_warning(f"Static catalog file not found: {path}")

        return result

    def validate_all(self) -> ValidationReport:
        """
        Run all validations and generate comprehensive report

        Returns:
            ValidationReport with all results
        """
        logger.info("Starting catalog configuration validation...")

        results = [
            self.validate_config_schema("catalog_config"),
            self.validate_pagination_consistency(),
            self.validate_data_source_settings(),
        ]

        report = ValidationReport.create(results)

        if report.overall_valid:
            logger.info("All configuration validations passed")
        else:
            logger.error(f"Configuration validation failed with {report.to_dict()['total_errors']} errors")

        return report

    def generate_validation_report(self) -> Dict[str, Any]:
        """Generate validation report as dictionary"""
        return self.validate_all().to_dict()


# Singleton instance
_validator: Optional[ConfigValidator] = None


def get_validator() -> ConfigValidator:
    """Get singleton validator instance"""
    global _validator
    if _validator is None:
        _validator = ConfigValidator()
    return _validator


def validate_configs_on_startup(config_dir: Optional[Path] = None) -> Tuple[bool, Dict[str, Any]]:
    """
    Validate all configs on application startup

    Args:
        config_dir: Config directory to validate (defaults to the packaged config)

    Returns:
        Tuple of (is_valid, report_dict)
    """
    validator = ConfigValidator(config_dir) if config_dir is not None else get_validator()
    report = validator.validate_all()

    if not report.overall_valid:
        logger.error("Configuration validation failed on startup")
        logger.error(f"Report: {json.dumps(report.to_dict(), indent=2)}")

    return report.overall_valid, report.to_dict()
