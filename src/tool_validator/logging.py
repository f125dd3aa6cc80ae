"""Logging configuration for the tool validator using loguru."""

import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

COMPONENT = "tool-validator"


def setup_logging(log_level: str = "INFO", log_dir: Optional[Path] = None) -> None:
    """
    Configure loguru handlers.

    Args:
        log_level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for rotating log files; no file logging when None
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level=log_level,
        colorize=True,
    )

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "tool_validator_{time:YYYY-MM-DD}.log",
            rotation="00:00",  # Rotate at midnight
            retention="30 days",
            level=log_level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )
        logger.info(f"Logging initialized. Logs are stored in: {log_dir}")


def forward_to_host(host_logger: Any, **extra: Any) -> int:
    """
    Forward tool-validator log records to a host logger.

    Records at WARNING and above go to ``host_logger.warn`` (or ``warning``),
    the rest to ``host_logger.info``. Only records bound with
    ``component=COMPONENT`` and every given ``extra`` value are forwarded.

    Args:
        host_logger: Object with ``info`` and ``warn``/``warning`` methods
        **extra: Additional bound values a record must carry

    Returns:
        Handler id, for ``logger.remove``
    """
    warning_no = logger.level("WARNING").no
    warn = getattr(host_logger, "warn", None) or host_logger.warning

    def sink(message: Any) -> None:
        record = message.record
        if record["level"].no >= warning_no:
            warn(record["message"])
        else:
            host_logger.info(record["message"])

    def accepts(record: dict) -> bool:
        bound = record["extra"]
        if bound.get("component") != COMPONENT:
            return False
        return all(bound.get(key) == value for key, value in extra.items())

    return logger.add(sink, level="INFO", filter=accepts, format="{message}")
