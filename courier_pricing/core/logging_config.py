# courier_pricing/core/logging_config.py
import logging
import sys
from typing import Optional

import structlog

from .settings import get_settings


def setup_logging(level: Optional[str] = None, json: Optional[bool] = None) -> None:
    """
    Configure structlog + standard logging.
    Logs go to stdout, as JSON by default; set PRICING_LOG_JSON=false for
    a human-readable console renderer.
    """
    cfg = get_settings()
    level_name = (level or cfg.log_level).upper()
    use_json = cfg.log_json if json is None else json

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "courier_pricing"):
    return structlog.get_logger(name)
