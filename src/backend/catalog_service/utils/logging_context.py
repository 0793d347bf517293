"""
Logging Context Management Utilities

Helpers for adding scoped context to structured logs. Context bound here
shows up in every log line emitted inside the scope, both from structlog
loggers and from stdlib loggers routed through the structlog formatter.
"""

import time
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars


@contextmanager
def log_context(**context_vars: Any):
    """
    Context manager for temporary logging context.

    Context is added on enter and removed on exit.

    Example:
        ```python
        with log_context(strategy="remote", page_number=3):
            logger.info("querying data source")  # Includes strategy, page_number
        ```
    """
    bind_contextvars(**context_vars)
    try:
        yield
    finally:
        unbind_contextvars(*context_vars.keys())


@contextmanager
def log_performance(operation_name: str, logger=None, **context: Any):
    """
    Context manager for logging operation duration.

    Logs ``<operation>_started`` and ``<operation>_completed`` with
    ``duration_ms``; a failing block logs ``<operation>_failed`` instead and
    the exception propagates.

    Args:
        operation_name: Name of the operation being timed
        logger: structlog logger (defaults to structlog.get_logger())
        **context: Extra key-value pairs for both log lines

    Example:
        ```python
        with log_performance("catalog_fetch", source="neo4j"):
            products = await data_source.fetch_all()
        ```
    """
    if logger is None:
        logger = structlog.get_logger()

    start_time = time.perf_counter()
    logger.debug(f"{operation_name}_started", operation=operation_name, **context)

    try:
        yield
    except Exception as e:
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.warning(
            f"{operation_name}_failed",
            operation=operation_name,
            duration_ms=duration_ms,
            error=str(e),
            **context
        )
        raise
    else:
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"{operation_name}_completed",
            operation=operation_name,
            duration_ms=duration_ms,
            **context
        )


def get_logger_with_context(name: str, **context: Any) -> structlog.BoundLogger:
    """
    Get a structlog logger with pre-bound context.

    Example:
        ```python
        logger = get_logger_with_context(__name__, component="strategy_selector")
        logger.info("strategy selected", strategy="remote")
        ```
    """
    return structlog.get_logger(name).bind(**context)
