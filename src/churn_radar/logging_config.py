"""Logging setup: rich console output on stderr, optional plain log file."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "churn_radar"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(verbose: bool, quiet: bool, level_name: str) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return _LEVELS.get(level_name.upper(), logging.INFO)


def _console_handler(verbose: bool) -> logging.Handler:
    # stdout is reserved for --json output
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )


def _file_handler(log_file: str) -> logging.Handler:
    handler = logging.FileHandler(log_file, mode="a")
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    level_name: str = "INFO",
) -> logging.Logger:
    """Install handlers on the root logger; quiet wins over verbose.

    ``level_name`` (from RISKCALC_LOG_LEVEL or 3SC_LOG_LEVEL) applies when
    neither flag is set.
    """
    level = resolve_level(verbose, quiet, level_name)

    handlers = [_console_handler(verbose)]
    if log_file:
        handlers.append(_file_handler(log_file))

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the churn_radar namespace."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
