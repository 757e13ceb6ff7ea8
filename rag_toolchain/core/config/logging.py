"""
Central logging configuration for the toolkit.
Call  init_logging()  *once* early in startup (before anything logs).

Library modules only ever use ``logging.getLogger(__name__)``; this module
routes those records into Loguru sinks.
"""

import logging
import os
import sys

from loguru import logger

from rag_toolchain.core.config.settings import settings


# --------------------------------------------------------------------------- #
# Helper – forward stdlib logging records to Loguru
# --------------------------------------------------------------------------- #
class _InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(
            depth=6, exception=record.exc_info  # keep caller info accurate
        ).log(level, record.getMessage())


def _patch_stdlib(level: str) -> None:
    logging.root.setLevel(level)
    logging.root.handlers[:] = [_InterceptHandler()]  # replace all handlers
    for noise in ("asyncio", "httpx", "httpcore", "openai", "anthropic"):
        logging.getLogger(noise).setLevel(logging.WARNING)


# --------------------------------------------------------------------------- #
# Main entry point
# --------------------------------------------------------------------------- #
def init_logging(level: str | None = None, log_dir: str | None = None) -> None:
    level = level or settings.LOG_LEVEL
    log_dir = log_dir or settings.LOG_DIR

    JSON_FORMAT = (
        '{{"timestamp":"{time:YYYY-MM-DD HH:mm:ss.SSS}",'
        '"level":"{level}",'
        '"message":{message!r},'
        '"module":"{name}","line":{line},"function":"{function}"}}'
    )

    logger.remove()  # drop default stderr sink

    # Human-friendly console
    logger.add(
        sys.stderr,
        level=level,
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss.SSS}</green> "
            "<level>{level: <8}</level> "
            "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        enqueue=False,
    )

    # Rotating JSON files, only when a directory is configured
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            f"{log_dir}/error.log",
            level="ERROR",
            rotation="5 MB",
            retention="14 days",
            compression="zip",
            format=JSON_FORMAT,
            enqueue=False,
        )
        logger.add(
            f"{log_dir}/rag_toolchain.log",
            level="DEBUG",
            rotation="10 MB",
            retention="10 days",
            compression="zip",
            format=JSON_FORMAT,
            enqueue=False,
        )

    # Feed stdlib logging into Loguru
    _patch_stdlib(level)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.WARNING if settings.DEBUG is False else logging.DEBUG
    )

    logger.info("Loguru logging configured")
