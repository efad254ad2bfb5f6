from __future__ import annotations

import time
from typing import Optional

from fast_rack.src.core.middleware import Middleware
from fast_rack.src.core.outcome import CONTINUE
from fast_rack.src.settings import settings
from fast_rack.utils.pylogger import get_python_logger

logger = get_python_logger(__name__)


class RequestLoggingMiddleware(Middleware):
    """Log the incoming request and the outgoing response of each pass."""

    def __init__(self, enabled: Optional[bool] = None, log_headers: Optional[bool] = None):
        self.enabled = settings.REQUEST_LOGGING_ENABLED if enabled is None else enabled
        self.log_headers = settings.REQUEST_LOG_HEADERS if log_headers is None else log_headers
        self._method = None
        self._path = None
        self._start_time = None

    def on_request(self, request):
        if not self.enabled:
            return CONTINUE

        self._start_time = time.time()
        self._method = getattr(request, "method", None)
        self._path = getattr(request, "path", None)

        request_data = {
            "method": self._method,
            "path": self._path,
            "query_params": dict(request.query_params)
            if getattr(request, "query_params", None)
            else None,
        }
        if self.log_headers:
            request_data["headers"] = dict(request.headers)

        logger.info("Incoming request: %s", request_data)
        return CONTINUE

    def on_response(self, response):
        if not self.enabled:
            return CONTINUE

        response_data = {
            "method": self._method,
            "path": self._path,
            "status_code": getattr(response, "status_code", None),
        }
        if self._start_time is not None:
            response_data["duration_ms"] = round((time.time() - self._start_time) * 1000, 2)
        if self.log_headers:
            response_data["headers"] = dict(response.headers)

        logger.info("Outgoing response: %s", response_data)
        return CONTINUE
