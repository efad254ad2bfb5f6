"""Application constants.

This module defines global constants used throughout the fast-rack package.
"""

from __future__ import annotations

LOGGER = "fast-rack-logger"
SERVICE = "fast-rack"
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_HEADER = "X-Rack-Retries"
DEFAULT_TRACE_HEADER = "X-Trace-ID"
DEFAULT_LOG_FORMAT = "timestamp=%(asctime)s.%(msecs)03d log_level=%(levelname)s hostname=%(hostname)s environment=%(environment)s trace_id=%(trace_id)s client.name=%(client_name)s client.version=%(client_version)s jwt.client_id=%(jwt_client_id)s jwt.username=%(jwt_username)s http.method=%(http_method)s http.path=%(http_path)s user_agent=%(user_agent)s class=%(module)s function=%(funcName)s log_message=%(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_ROTATION_CONFIG = {"maxBytes": 52428800, "backupCount": 5, "encoding": "utf-8"}
LOG_CONTEXT_FIELDS = (
    "client_name",
    "client_version",
    "jwt_client_id",
    "jwt_username",
    "http_method",
    "http_path",
    "user_agent",
)
