"""Shared utilities: logging setup and path helpers."""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

FilePath = Union[Path, str]

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure loguru sinks for the process.

    Removes the default handler so repeated calls do not duplicate output.

    Args:
        level: Minimum level for the stderr sink
        log_file: Optional path for a rotating file sink at DEBUG level
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=True)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level="DEBUG",
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=False,
            enqueue=False,
        )

    logger.debug("Logging configured", level=level, log_file=str(log_file) if log_file else None)


def relative_posix(path: Path, root: Path) -> str:
    """Vault-relative path with forward slashes, used for stable ordering and reporting."""
    return path.relative_to(root).as_posix()
