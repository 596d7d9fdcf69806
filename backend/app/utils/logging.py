"""Unified logging configuration for the One Cre backend.

Provides consistent logging with both console and file output.
Log files are written to the configured logs root with rotation support.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.settings import settings

# Default log format
LOG_FORMAT = "[%(asctime)s.%(msecs)03d][%(levelname)s][%(filename)s:%(lineno)d]: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO. httpx logs every request
# URL, including the Google OAuth endpoints.
QUIET_LOGGERS = ("httpx", "httpcore", "multipart")


def _ensure_app_logger_configured():
    """
    Ensure the app parent logger is configured with console handler.
    This is called automatically on module import.
    """
    app_logger = logging.getLogger("app")

    # Check if app logger already has our formatted console handler
    has_formatted_handler = any(
        isinstance(h, logging.StreamHandler)
        and h.formatter
        and "%(asctime)s" in (h.formatter._fmt if hasattr(h.formatter, "_fmt") else "")
        for h in app_logger.handlers
    )

    if not has_formatted_handler:
        app_logger.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        app_logger.addHandler(console_handler)

        app_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        # Records still propagate so pytest's caplog can observe them
        app_logger.propagate = settings.environment == "test"


def setup_logging(log_name: str = "onecre") -> logging.Logger:
    """
    Setup logging configuration with console and file output.

    Log file path pattern: {logs_root}/{log_name}.log

    Args:
        log_name: The name of the log file (without .log extension).
                 Default: "onecre"

    Returns:
        Configured logger instance
    """
    _ensure_app_logger_configured()

    log_dir = _get_logs_root()

    logger_name = f"app.{log_name}"
    logger = logging.getLogger(logger_name)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        log_file_path = os.path.join(log_dir, f"{log_name}.log")

        # File handler lives on the app parent logger
        app_logger = logging.getLogger("app")
        if not any(isinstance(h, RotatingFileHandler) and h.baseFilename == log_file_path for h in app_logger.handlers):
            app_file_handler = RotatingFileHandler(
                log_file_path,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
                encoding="utf-8",
            )
            app_file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
            app_logger.addHandler(app_file_handler)

        logger.propagate = True
        logger.info(f"Logging to {log_file_path}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Logger instance
    """
    _ensure_app_logger_configured()

    # Convert module name to app.* namespace if needed
    if not name.startswith("app."):
        name = f"app.{name}"

    return logging.getLogger(name)


def _get_logs_root() -> Path | None:
    """
    Get the logs root directory.

    Returns None if the directory cannot be created.
    """
    logs_root = settings.get_logs_root()
    if _can_create_dir(logs_root):
        return logs_root
    return None


def _can_create_dir(path: Path) -> bool:
    """Check if a directory can be created."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        return True
    except (OSError, PermissionError):
        return False


# Configure app parent logger on module import
_ensure_app_logger_configured()
