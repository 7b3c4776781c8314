"""
TokioAI Logging Configuration

Provides centralized logging configuration with structured logging support.
"""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .config import LoggingConfig, get_config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class StructuredFormatter(logging.Formatter):
    """Formatter that appends the key/value data attached by log_structured."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        data = getattr(record, "structured_data", None)
        if data:
            return f"{text} | Data: {data}"
        return text


def _file_handler(settings: LoggingConfig, log_file: Path, level: str) -> Dict[str, Any]:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(log_file),
        "maxBytes": settings.max_file_size,
        "backupCount": settings.backup_count,
        "encoding": "utf-8",
    }


def setup_logging(
    settings: Optional[LoggingConfig] = None,
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    enable_structured: bool = True,
) -> None:
    """
    Configure the ``tokioai`` logger hierarchy.

    Args:
        settings: Logging section to apply; the process config's section is
            used when omitted
        log_level: Overrides ``settings.level`` for every handler
        log_file: Overrides ``settings.file_path``; no file handler is added
            when neither is set
        enable_structured: Render ``log_structured`` data on the console
    """
    if settings is None:
        settings = get_config().logging

    level = log_level or settings.level
    if log_file is None and settings.file_path:
        log_file = Path(settings.file_path).expanduser()

    console_format = "structured" if enable_structured else "standard"
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": console_format,
            "stream": sys.stderr,
        }
    }
    if log_file:
        handlers["file"] = _file_handler(settings, log_file, level)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
                "structured": {
                    "()": StructuredFormatter,
                    "format": LOG_FORMAT,
                    "datefmt": DATE_FORMAT,
                },
                "detailed": {
                    "()": StructuredFormatter,
                    "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s",
                    "datefmt": DATE_FORMAT,
                },
            },
            "handlers": handlers,
            "loggers": {
                "tokioai": {"level": level, "handlers": list(handlers), "propagate": False},
            },
            "root": {"level": "WARNING", "handlers": list(handlers)},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_structured(
    logger: logging.Logger, level: int, message: str, **structured_data: Any
) -> None:
    """
    Log a message with structured data.

    Args:
        logger: Logger instance
        level: Logging level
        message: Log message
        **structured_data: Additional structured data to include
    """
    if not logger.isEnabledFor(level):
        return
    record = logger.makeRecord(logger.name, level, "", 0, message, (), None)
    record.structured_data = structured_data
    logger.handle(record)
