"""Structured logging configuration using structlog."""
import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

from sitepub.config import settings

# Outbound HTTP stack; logs one INFO line per request
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging() -> None:
    """Configure structlog over stdlib logging for the publish service."""
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.is_production:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LogContext:
    """Bind fields such as ``project_id`` to every log line inside the block.

    Nested contexts restore whatever outer values they shadowed.
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._tokens: Dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.fields)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


def log_publish_activity(
    activity: str,
    project_id: str,
    build_output_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Log a build/publish pipeline event with consistent structure.

    Args:
        activity: Description of the activity
        project_id: ID of the project being published
        build_output_id: ID of the build artifact involved, if any
        details: Optional additional details
    """
    get_logger("publish").info(
        activity,
        project_id=project_id,
        build_output_id=build_output_id,
        **(details or {}),
    )
