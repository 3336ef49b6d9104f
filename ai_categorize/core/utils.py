"""Shared utility functions for the Firefly AI categorizer."""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

import colorlog

LOGGER_NAME = "ai-categorize"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Get a project logger; the colorized handler lives on the top-level project logger."""
    root = logging.getLogger(LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s" + LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.propagate = False
    return logging.getLogger(name)


def setup_logging(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure the project log level and an optional plain-text file handler."""
    logger = get_logger()
    logger.setLevel(level.upper())
    if log_file and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        ensure_dir(Path(log_file).parent)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
    return logger


def ensure_dir(path: str | Path) -> None:
    """Ensure a directory exists (like mkdir -p)."""
    Path(path).mkdir(parents=True, exist_ok=True)


def utcnow_iso() -> str:
    """Get the current UTC time as an ISO8601 string."""
    return datetime.now(UTC).isoformat()


def unique_tags(tags: Iterable[str]) -> list[str]:
    """Drop repeated tags, keeping the first occurrence of each."""
    return list(dict.fromkeys(tags))


def with_tag(tags: Iterable[str], tag: str) -> list[str]:
    """Return the tag list with ``tag`` appended unless it is already present."""
    result = unique_tags(tags)
    if tag not in result:
        result.append(tag)
    return result
