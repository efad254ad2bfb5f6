"""Logging utilities for fast-rack.

This module provides the trace-aware formatter, the tqdm-friendly console
handler and the ``dictConfig`` setup shared by the engine, the built-in
middleware and the ASGI host adapter.
"""

from __future__ import annotations

import logging.config
import os
import socket
import sys
import tempfile
import warnings

from tqdm import tqdm

from fast_rack.utils.constants import (
    DEFAULT_LOG_DATE_FORMAT,
    DEFAULT_LOG_FORMAT,
    LOG_CONTEXT_FIELDS,
    LOG_ROTATION_CONFIG,
    LOGGER,
)
from fast_rack.utils.trace_context import get_log_context, get_trace_id


def _touch(path: str) -> None:
    with open(path, "a"):
        pass


def get_log_file_path(default_path: str = "/etc/logs/app.log") -> str:
    """Get a writable log file path, falling back to the temp directory.

    Args:
        default_path: Path used when the LOG_FILE_PATH env var is not set

    Returns:
        A log file path that can be written to

    Raises:
        PermissionError: If neither the requested path nor the temp
            directory fallback is writable.
    """
    log_file_path = os.environ.get("LOG_FILE_PATH", default_path)
    fallback_path = os.path.join(tempfile.gettempdir(), "app.log")

    log_dir = os.path.dirname(log_file_path)
    if log_dir and not os.path.exists(log_dir):
        try:
            os.makedirs(log_dir, exist_ok=True)
        except OSError as e:
            warnings.warn(
                f"Cannot create log directory {log_dir} ({e}). "
                f"Falling back to temp directory: {fallback_path}",
                UserWarning,
            )
            return fallback_path

    try:
        _touch(log_file_path)
    except OSError as e:
        warnings.warn(
            f"Cannot write to log file {log_file_path} ({e}). "
            f"Falling back to temp directory: {fallback_path}",
            UserWarning,
        )
        try:
            _touch(fallback_path)
        except OSError as fallback_error:
            raise PermissionError(
                f"Cannot write to either requested log path {log_file_path} "
                f"or fallback path {fallback_path}"
            ) from fallback_error
        return fallback_path

    return log_file_path


class TqdmLoggingHandler(logging.StreamHandler):
    """Logging handler writing through tqdm.write so progress bars stay intact."""

    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg)
        except Exception:
            self.handleError(record)


class TraceFormatter(logging.Formatter):
    """Formatter adding trace id, request log context, hostname and environment."""

    def format(self, record):
        record.trace_id = get_trace_id() or "no-trace"

        log_context = get_log_context()
        for field in LOG_CONTEXT_FIELDS:
            setattr(record, field, log_context.get(field, "unknown"))

        record.hostname = os.environ.get("HOSTNAME", socket.gethostname())
        record.environment = os.environ.get("APP_ENV", "local")

        return super().format(record)


def configure_logging(
    log_level="INFO",
    log_format=None,
    log_date_format=None,
    enable_file_logging=True,
):
    """Configure logging for the whole process.

    Call once at startup. Console output goes through tqdm; file output, when
    enabled, uses a rotating handler with the same format.
    """
    log_level = log_level.upper()

    if log_format is None:
        log_format = DEFAULT_LOG_FORMAT
    if log_date_format is None:
        log_date_format = DEFAULT_LOG_DATE_FORMAT

    formatters = {
        LOGGER: {
            "()": TraceFormatter,
            "format": log_format,
            "datefmt": log_date_format,
        }
    }

    handlers = {
        "console": {
            "level": log_level,
            "class": "logging.StreamHandler",
            "formatter": LOGGER,
            "stream": sys.stdout,
        },
        "tqdm_console": {
            "level": log_level,
            "()": TqdmLoggingHandler,
            "formatter": LOGGER,
        },
    }

    root_handlers = ["tqdm_console"]
    if enable_file_logging:
        handlers["file"] = {
            "level": log_level,
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": LOGGER,
            "filename": get_log_file_path(),
            **LOG_ROTATION_CONFIG,
        }
        root_handlers.append("file")

    logging.config.dictConfig(
        {
            "version": 1,
            "formatters": formatters,
            "handlers": handlers,
            "root": {
                "level": log_level,
                "handlers": root_handlers,
            },
            "disable_existing_loggers": False,
        }
    )


def get_python_logger(name=None):
    """Get a logger with the specified name.

    Args:
        name: The name of the logger. If None, uses the package logger.
              Pass __name__ to get module-specific loggers.

    Returns:
        logging.Logger: Configured logger instance
    """
    if name is None:
        name = LOGGER
    return logging.getLogger(name)
