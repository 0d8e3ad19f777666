"""Loguru setup for the service and the maintenance CLI.

The server also routes stdlib records (uvicorn, httpx) into loguru; one-off
CLI commands only carry the resilience core's own messages.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from tabvault.resilience.settings import TabvaultSettings

CONSOLE_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <8}</level> <cyan>{name}</cyan> {message}"
FILE_ROTATION = "00:00"
FILE_RETENTION = "7 days"


class StdlibBridge(logging.Handler):
    """Re-emit stdlib records through loguru under the stdlib logger's name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        origin = {"name": record.name, "function": record.funcName, "line": record.lineno}
        logger.patch(lambda r: r.update(origin)).opt(exception=record.exc_info).log(level, record.getMessage())


def setup_logging(settings: TabvaultSettings, *, server: bool = False) -> None:
    """Replace loguru's default sink with the configured ones.

    With ``server`` the stdlib root logger is bridged into loguru and the
    per-request access log is silenced.
    """
    level = settings.log_level.upper()

    logger.remove()
    if settings.log_json:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=level,
            rotation=FILE_ROTATION,
            retention=FILE_RETENTION,
            serialize=settings.log_json,
        )

    if server:
        logging.basicConfig(handlers=[StdlibBridge()], level=0, force=True)
        for name in ("uvicorn.access", "httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging ready (level={}, json={}, file={})", level, settings.log_json, settings.log_file)
