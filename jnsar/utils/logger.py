from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

from jnsar.utils.config import get_settings


def setup_logging() -> None:
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_file:
        log_dir = os.path.dirname(settings.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, mode="a"))

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def summarize_values(values: dict[str, Any], precision: int = 4) -> dict[str, Any]:
    """Round floats and blank out NaN so indicator values log as readable JSON."""
    summary: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, float):
            summary[key] = None if value != value else round(value, precision)
        elif isinstance(value, dict):
            summary[key] = summarize_values(value, precision)
        else:
            summary[key] = value
    return summary
