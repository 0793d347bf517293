"""
Health Check API Endpoints for Configuration Validation
GET /api/v1/health/config - Catalog configuration validation report
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter
from pydantic import BaseModel

from ...services.config.config_validator import ConfigValidator
from ...services.config.configuration_service import get_config_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/health", tags=["Health"])


class ConfigHealthResponse(BaseModel):
    """Response model for config health check"""
    status: str
    overall_valid: bool
    timestamp: str
    total_errors: int
    total_warnings: int
    results: List[Dict[str, Any]]


@router.get("/config", response_model=ConfigHealthResponse)
async def get_config_health():
    """
    Validate the active catalog configuration

    Example:
        GET /api/v1/health/config

        Response:
        {
            "status": "healthy",
            "overall_valid": true,
            "timestamp": "2025-01-28T10:30:00+00:00",
            "total_errors": 0,
            "total_warnings": 0,
            "results": [...]
        }
    """
    validator = ConfigValidator(get_config_service().config_dir)
    report = validator.generate_validation_report()

    if not report["overall_valid"]:
        status = "unhealthy"
    elif report["total_warnings"]:
        status = "warning"
    else:
        status = "healthy"

    return ConfigHealthResponse(
        status=status,
        overall_valid=report["overall_valid"],
        timestamp=report["timestamp"],
        total_errors=report["total_errors"],
        total_warnings=report["total_warnings"],
        results=report["results"],
    )
