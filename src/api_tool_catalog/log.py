"""Logging setup using Loguru.

Logs go to stderr: stdout is reserved for the JSON printed by the CLI.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[name]}:{function}:{line} | {message}"
)


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace the default handler with a stderr sink and an optional file sink.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to a log file. If None, logs to stderr only
        rotation: Log rotation setting for the file sink
        retention: Log retention period for the file sink
    """
    logger.remove()
    logger.configure(extra={"name": "api_tool_catalog"})

    logger.add(sys.stderr, level=level, format=LOG_FORMAT, catch=True)

    if log_file:
        logger.add(
            log_file,
            level=level,
            format=LOG_FORMAT,
            rotation=rotation,
            retention=retention,
            catch=True,
        )

    logger.debug("Logging initialized at {} (file={})", level, log_file)


def get_logger(name: str) -> Any:
    """Get a logger bound to the given module name."""
    return logger.bind(name=name)
