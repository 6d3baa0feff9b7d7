"""
Loguru configuration for shortlink.

Services and repositories log through the standard library; their records
are forwarded to loguru by InterceptHandler so every line ends up in the
same sinks with the same request id.
"""

import logging
import os
import sys
from typing import Any, Dict

from loguru import logger

from shortlink.core.config import settings

# Loggers that install their own handlers and must be pointed back at loguru
ROUTED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi", "alembic")


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Report the caller, not the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _file_sink_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "level": settings.LOG_LEVEL.upper(),
        "rotation": settings.LOG_ROTATION,
        "retention": settings.LOG_RETENTION,
        "compression": "gz",
    }
    if settings.LOG_JSON:
        options["serialize"] = True
    else:
        options["format"] = settings.LOG_FORMAT
    return options


def setup_logging():
    """
    Configure loguru sinks and route standard library logging into them.

    A rotating file sink is always installed (JSON lines when LOG_JSON);
    stderr is added in DEBUG mode.

    Returns:
        The configured loguru logger
    """
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    logger.remove()
    # Records logged outside a request still need a request_id for the format
    logger.configure(extra={"request_id": "-"})

    if settings.DEBUG:
        logger.add(
            sys.stderr,
            level=settings.LOG_LEVEL.upper(),
            format=settings.LOG_FORMAT,
            backtrace=True,
            diagnose=True,
        )

    logger.add(os.path.join(settings.LOG_DIR, settings.LOG_FILENAME), **_file_sink_options())

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in list(logging.root.manager.loggerDict):
        existing = logging.getLogger(name)
        existing.handlers = []
        existing.propagate = True

    for name in ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers = [InterceptHandler()]
        routed.propagate = False

    return logger
