"""Built-in rack middleware.

Ready-made :class:`~fast_rack.src.core.middleware.Middleware` implementations:
synthetic responses, response-driven retries, trace id propagation and
request logging.
"""

from __future__ import annotations

from fast_rack.src.middleware.request_logging import RequestLoggingMiddleware
from fast_rack.src.middleware.retry_request import RetryRequestMiddleware
from fast_rack.src.middleware.synthetic_response import SyntheticResponseMiddleware
from fast_rack.src.middleware.trace_middleware import TraceMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "RetryRequestMiddleware",
    "SyntheticResponseMiddleware",
    "TraceMiddleware",
]
