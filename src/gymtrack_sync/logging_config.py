"""structlog configuration for gymtrack_sync.

Library modules log through ``logging.getLogger(__name__)``; this module
routes those records through structlog's formatter so that the API server
and scripts get either console or JSON-lines output on stderr.
"""

import logging
import sys

import structlog


def configure_logging(level: str | int = "INFO", log_json: bool = False) -> None:
    """Configure structlog processors and output routing.

    Args:
        level: Log level for the ``gymtrack_sync`` logger (name or number).
        log_json: Use JSON renderer instead of console renderer.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

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
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.getLogger("gymtrack_sync").setLevel(level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
