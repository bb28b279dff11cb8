"""Structured logging setup for the console client."""

import logging
import sys

import structlog

# Libraries that are chatty at DEBUG/INFO level
NOISY_LOGGERS = ("httpx", "httpcore", "msal")


def configure_logging(debug: bool = False) -> structlog.stdlib.BoundLogger:
    """
    Configure structlog on top of stdlib logging.

    Logs are written to stderr so they never interleave with the chat
    transcript on stdout. Only warnings are shown unless debug is set.
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if debug else logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("agent_cli")
