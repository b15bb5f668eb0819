"""Logging configuration for the Pylo CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from pylo.config.models import LoggingSettings

LOG_FILENAME = "pylo.log"
_HANDLER_MARKER = "_pylo_handler"


def configure_logging(settings: LoggingSettings, log_dir: Optional[Path] = None) -> None:
    """Attach console and rotating-file handlers to the `pylo` logger.

    Handlers installed by an earlier call are replaced, so repeated invocations in
    one process do not duplicate output.

    Args:
        settings: Level and rotation settings.
        log_dir: Directory for `pylo.log`; file logging is skipped when None or
            when the directory cannot be created.
    """
    logger = logging.getLogger("pylo")
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logger.setLevel(min(level, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    setattr(console_handler, _HANDLER_MARKER, True)
    logger.addHandler(console_handler)

    if log_dir is None:
        return
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILENAME,
            maxBytes=max(settings.max_size_mb, 1) * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning("File logging disabled: %s", exc)
        return
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    setattr(file_handler, _HANDLER_MARKER, True)
    logger.addHandler(file_handler)


__all__ = ["LOG_FILENAME", "configure_logging"]
