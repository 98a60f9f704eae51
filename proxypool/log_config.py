"""Logging configuration for the proxy pool server."""

import logging
import sys

_LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name, typically __name__ from calling module.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)


def parse_log_level(name: str) -> int:
    """Map a configured ``log_level`` string to a logging level.

    Args:
        name: Level name such as ``"info"`` or ``"warn"`` (case-insensitive).

    Returns:
        Numeric logging level.

    Raises:
        ValueError: If the name is not a known level.
    """
    try:
        return _LEVEL_NAMES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown log level {name!r}") from None


def set_global_log_level(level: int) -> None:
    """Set the global logging level for all proxypool loggers.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO).
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    proxypool_logger = logging.getLogger("proxypool")
    proxypool_logger.setLevel(level)
