"""Action logging.

Components take an ``ActionLog`` by parameter instead of writing to a
process-wide log file. A ``logging.Logger`` satisfies the protocol; tests
pass a capturing sink.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "vaultstore"

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ActionLog(Protocol):
    """Anything with ``log(level, msg)``."""

    def log(self, level: int, msg: str) -> None:
        ...


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger or one of its children."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def configure_logging(
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach the append-only file handler and the terminal handler.

    Safe to call more than once; handlers from a previous call are replaced.

    Args:
        log_file: Append-only log file (None disables file logging)
        verbose: Log DEBUG records as well
        console: Rich console for terminal output (defaults to stderr)

    Returns:
        The package logger
    """
    logger = get_logger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in list(logger.handlers):
        if getattr(handler, "_vaultstore", False):
            logger.removeHandler(handler)
            handler.close()

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        file_handler._vaultstore = True
        logger.addHandler(file_handler)

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        log_time_format=f"[{DATE_FORMAT}]",
        markup=False,
    )
    rich_handler._vaultstore = True
    logger.addHandler(rich_handler)
    return logger
