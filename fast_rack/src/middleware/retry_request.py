from __future__ import annotations

from typing import Iterable, Optional

from fast_rack.src.core.middleware import Middleware
from fast_rack.src.core.outcome import CONTINUE, RETRY
from fast_rack.utils.pylogger import get_python_logger

logger = get_python_logger(__name__)


class RetryRequestMiddleware(Middleware):
    """Ask the rack to re-run the pipeline while retries remain.

    Args:
        retries: How many retries this middleware may request.
        statuses: When given, only responses with one of these status codes
            are retried; otherwise every response is.
    """

    def __init__(self, retries: int, statuses: Optional[Iterable[int]] = None):
        if retries < 0:
            raise ValueError(f"retries must be non-negative, got {retries}")
        self.remaining = retries
        self.statuses = frozenset(statuses) if statuses is not None else None

    def on_response(self, response):
        if self.remaining <= 0:
            return CONTINUE

        status_code = getattr(response, "status_code", None)
        if self.statuses is not None and status_code not in self.statuses:
            return CONTINUE

        self.remaining -= 1
        logger.debug(
            "Retrying on status %s, %d retries left", status_code, self.remaining
        )
        return RETRY
