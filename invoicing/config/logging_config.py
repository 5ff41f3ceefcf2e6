"""Logging setup for the API server and CLI jobs.

Records go to the console and, optionally, a rotating file, either as
plain text or as one JSON object per line. Fields bound with
:class:`~invoicing.utils.logging_utils.LogContext` (correlation id, invoice
id and the like) are attached to every record by a filter on each handler.
"""

import json
import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
FORMATS = ("standard", "json")

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_STANDARD_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

# Libraries that log every request or discovery fetch at INFO
_CHATTY_LOGGERS = ("googleapiclient.discovery_cache", "urllib3", "multipart")


class JSONFormatter(logging.Formatter):
    """One JSON object per record; context fields are copied alongside."""

    def format(self, record: logging.LogRecord) -> str:
        entry = dict(
            timestamp=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            module=record.module,
            function=record.funcName,
            line=record.lineno,
        )
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_RECORD_KEYS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class LoggingConfig:
    """
    Where and how log records are written.

    ``log_level`` is case-insensitive. File output needs ``log_file``;
    the file rotates at ``max_file_size`` bytes keeping ``backup_count``
    old copies.
    """

    log_level: str = "INFO"
    log_format: str = "standard"
    log_file: Optional[str] = None
    enable_console: bool = True
    enable_file: bool = False
    max_file_size: int = 10 * 1024 * 1024
    backup_count: int = 5

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if self.log_level not in LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {', '.join(LEVELS)}")
        if self.log_format not in FORMATS:
            raise ValueError(f"Invalid log format: {self.log_format}. Must be one of {', '.join(FORMATS)}")
        if self.enable_file and not self.log_file:
            raise ValueError("log_file must be specified when enable_file is True")

    @classmethod
    def from_env(cls, default_level: str = "INFO") -> "LoggingConfig":
        """
        Read LOG_LEVEL, LOG_FORMAT, LOG_FILE, LOG_CONSOLE, LOG_FILE_ENABLED,
        LOG_MAX_FILE_SIZE and LOG_BACKUP_COUNT.
        """
        return cls(
            log_level=os.getenv("LOG_LEVEL", default_level),
            log_format=os.getenv("LOG_FORMAT", "standard").lower(),
            log_file=os.getenv("LOG_FILE") or None,
            enable_console=_env_flag("LOG_CONSOLE", True),
            enable_file=_env_flag("LOG_FILE_ENABLED", False),
            max_file_size=int(os.getenv("LOG_MAX_FILE_SIZE", cls.max_file_size)),
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", cls.backup_count)),
        )

    @property
    def level(self) -> int:
        return logging.getLevelName(self.log_level)

    def formatter(self) -> logging.Formatter:
        if self.log_format == "json":
            return JSONFormatter()
        return logging.Formatter(TEXT_FORMAT, TEXT_DATE_FORMAT)

    def handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []
        if self.enable_console:
            handlers.append(logging.StreamHandler())
        if self.enable_file and self.log_file:
            Path(self.log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    self.log_file, maxBytes=self.max_file_size, backupCount=self.backup_count
                )
            )
        return handlers


def _detach_root_handlers() -> logging.Logger:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    return root


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers with the ones ``config`` describes."""
    from invoicing.utils.logging_utils import ContextFilter

    root = _detach_root_handlers()
    root.setLevel(config.level)

    formatter = config.formatter()
    context_filter = ContextFilter()
    for handler in config.handlers():
        handler.setLevel(config.level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def reset_logging() -> None:
    """Drop all root handlers and go back to the WARNING default."""
    _detach_root_handlers().setLevel(logging.WARNING)
