"""structlog configuration for the task list API.

Two output modes:
- Console (default): human-readable lines to stderr
- JSON (LOG_JSON=true): one JSON object per line to stderr
"""

from __future__ import annotations

import logging
import sys

import structlog

PACKAGE_LOGGER = "tasklist_api"


# PUBLIC_INTERFACE
def configure_logging(*, level: str = "INFO", log_json: bool = False) -> None:
    """Configure structlog processors and route stdlib logging through them.

    Args:
        level: Level name applied to the ``tasklist_api`` logger.
        log_json: Use the JSON renderer instead of the console renderer.
    """
    package_level = logging.getLevelName(level.upper())
    if not isinstance(package_level, int):
        package_level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    final_processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_json:
        final_processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=final_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(package_level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
