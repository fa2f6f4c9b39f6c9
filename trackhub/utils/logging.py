"""structlog setup for trackhub.

The router, adapters and diagnostic log all log through structlog with
bound context (``component``, ``provider``, ``session_id``). Call
``configure_logging`` once at startup; the API server does this from
``Settings.log_level`` and ``Settings.log_json``.
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    include_timestamp: bool = True,
) -> None:
    """Route structlog through the stdlib root logger on stdout.

    Args:
        level: Minimum level name, e.g. ``"DEBUG"`` to see every diagnostic record
        json_format: Render one JSON object per line instead of console output
        include_timestamp: Stamp each line with an ISO timestamp
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if include_timestamp:
        processors.insert(4, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None, **context) -> structlog.BoundLogger:
    """Return a logger with ``context`` already bound, e.g. ``component="server"``."""
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger
