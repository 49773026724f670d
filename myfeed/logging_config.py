"""Logging configuration for myfeed."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

TRACE = 5

logging.addLevelName(TRACE, "TRACE")


def setup_logging(level: str = "INFO", log_dir: Optional[Path] = None, console: Optional[Console] = None) -> logging.Logger:
    """Configure a rich console handler and, optionally, a daily log file.

    Args:
        level: Console level name (``TRACE`` is accepted)
        log_dir: Directory for log files (created if missing)
        console: Rich console to log to, defaults to stderr
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(TRACE)

    # Remove existing handlers (avoid duplicates)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(logging.getLevelName(level.upper()))
    console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            filename=log_dir / "myfeed.log",
            when="midnight",
            backupCount=30,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root_logger
