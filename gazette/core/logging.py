"""
Logging setup for the gazette API.

Provides a consistent logging format and keeps HTTP client chatter out of the
application log unless debugging.
"""

import logging
import sys

_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a pipe-delimited format on stdout."""
    resolved = level.upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    if resolved != "DEBUG":
        # httpx logs every request line at INFO, including query strings.
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
