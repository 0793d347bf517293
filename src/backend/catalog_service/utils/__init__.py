"""Utility helpers for logging context and performance tracking."""

from .logging_context import (
    log_context,
    log_performance,
    get_logger_with_context,
)

__all__ = [
    "log_context",
    "log_performance",
    "get_logger_with_context",
]
