"""Logging configuration for the command line entry point."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGS_DIR = Path("logs")
LOG_FILE_NAME = "govwatch.log"
MAX_LOG_FILES = 3
MAX_LOG_FILE_BYTES = 4 * 1024 * 1024


def configure_logging(*, verbose: bool = False, log_file: bool = False) -> logging.Handler:
    """Install one root handler: rich on stderr, or rotating files under ./logs."""
    level = logging.DEBUG if verbose else logging.INFO
    handler: logging.Handler
    if log_file:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        # backupCount excludes the live file
        handler = RotatingFileHandler(
            LOGS_DIR / LOG_FILE_NAME,
            maxBytes=MAX_LOG_FILE_BYTES,
            backupCount=MAX_LOG_FILES - 1,
            encoding="utf-8",
        )
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
        )
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)
    # keep per-request noise out of the logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return handler
