"""Logging setup for twinbench.

Configures a console handler whose level follows the CLI verbosity flags
and an optional file handler that always logs at DEBUG, so dropped trials
stay diagnosable after the fact.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "twinbench"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the root twinbench logger.

    Args:
        verbose: If True, set console log level to DEBUG.
        quiet: If True, set console log level to WARNING. Ignored if *verbose* is True.
        log_file: If provided, add a file handler at DEBUG level to this path.

    Returns:
        The configured root logger for twinbench.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    reset_logging()

    console = logging.StreamHandler()
    if verbose:
        console.setLevel(logging.DEBUG)
    elif quiet:
        console.setLevel(logging.WARNING)
    else:
        console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(fh)

    return logger


def reset_logging() -> None:
    """Detach and close every handler on the twinbench logger.

    Closing flushes and releases a ``--log-file`` before the next
    configuration.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
