"""Logging configuration for the fabric validator."""

import logging
import sys
from typing import Any

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name, typically __name__ from calling module.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)


def set_global_log_level(level: int) -> None:
    """Set the global logging level for all aiefabric loggers.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO).
    """
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    package_logger = logging.getLogger("aiefabric")
    package_logger.setLevel(level)


def log_diagnostic(logger: logging.Logger, diagnostic: Any) -> None:
    """Log a validation diagnostic tagged with its rule id.

    Error-severity diagnostics go to ERROR, everything else to WARNING, so
    ``-v`` is not needed to see why a design was rejected.

    Args:
        logger: Logger of the reporting module.
        diagnostic: Object with ``rule`` and ``is_error`` attributes whose
            ``str()`` names the entity and the problem.
    """
    level = logging.ERROR if diagnostic.is_error else logging.WARNING
    logger.log(level, "[%s] %s", diagnostic.rule, diagnostic)
