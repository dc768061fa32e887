"""
Logging setup using Loguru
Console output always, optional rotating file sink when LOG_FILE is set
"""
import sys
from pathlib import Path

from loguru import logger

from levelminds.core.config import settings


def setup_logging() -> None:
    """Configure application-wide logging sinks."""
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>",
        level=settings.LOG_LEVEL,
        colorize=True,
        backtrace=True,
        diagnose=settings.DEBUG,  # Never render locals outside debug
    )

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            level=settings.LOG_LEVEL,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )

    logger.info(f"Logging initialized - Level: {settings.LOG_LEVEL}")
