"""Logging setup: Rich on stderr, plus an optional plain log file."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

# Shared with progress bars so they don't fight the log output
stderr_console = Console(stderr=True)

FILE_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging(level: str = "info", log_file: Path | None = None) -> None:
    from rich.logging import RichHandler

    numeric = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("diet_tracker")
    logger.setLevel(logging.DEBUG if log_file else numeric)
    logger.handlers.clear()

    console_handler = RichHandler(
        console=stderr_console,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(numeric)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)
