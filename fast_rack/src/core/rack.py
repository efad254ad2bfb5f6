"""The pipeline engine.

A :class:`FastRack` runs its middleware forward over the request and then in
reverse over the response. Any middleware may short-circuit the request
phase with a synthetic response, or ask for the whole pipeline to be re-run,
up to ``max_retries`` times per run.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Tuple

from starlette.responses import Response

from fast_rack.src.core.exceptions.exceptions import (
    AppException,
    AppExceptionCode,
    InvalidMiddlewareException,
    UnhandledOutcomeException,
)
from fast_rack.src.core.middleware import Middleware
from fast_rack.src.core.outcome import CONTINUE, Continue, Outcome, Retry, Synthetic
from fast_rack.src.settings import settings
from fast_rack.utils.pylogger import get_python_logger

logger = get_python_logger(__name__)

REQUEST_PHASE = "request"
RESPONSE_PHASE = "response"


class FastRack:
    """An ordered middleware pipeline with short-circuit and bounded retry.

    Args:
        max_retries: Retries allowed per run before the current response is
            returned as final. Defaults to ``settings.MAX_RETRIES``.
        retry_header: Header set to the retry count on runs that retried.
            Defaults to ``settings.RETRY_HEADER``.
        response_factory: Builds the default response each run starts with.
    """

    def __init__(
        self,
        max_retries: Optional[int] = None,
        retry_header: Optional[str] = None,
        response_factory: Callable[[], Any] = Response,
    ):
        if max_retries is None:
            max_retries = settings.MAX_RETRIES
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise AppException(
                f"max_retries must be a non-negative integer, got {max_retries!r}",
                AppExceptionCode.CONFIGURATION_VALIDATION_ERROR,
            )

        self._middleware: List[Middleware] = []
        self._max_retries = max_retries
        self._retry_header = retry_header or settings.RETRY_HEADER
        self._response_factory = response_factory

    @property
    def middleware(self) -> Tuple[Middleware, ...]:
        return tuple(self._middleware)

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def retry_header(self) -> str:
        return self._retry_header

    def __len__(self) -> int:
        return len(self._middleware)

    def __repr__(self) -> str:
        names = ", ".join(type(m).__name__ for m in self._middleware)
        return f"FastRack([{names}], max_retries={self._max_retries})"

    def add(self, middleware: Middleware) -> None:
        """Append a middleware. Registration order is request-phase order."""
        if not isinstance(middleware, Middleware):
            raise InvalidMiddlewareException(
                f"Expected a Middleware instance, got {type(middleware).__name__}"
            )
        self._middleware.append(middleware)

    def run(self, request: Any) -> Any:
        """Run the pipeline once for ``request`` and return the final response.

        Retry exhaustion and synthetic responses both end in a returned
        response. Only an unhandled outcome raises.

        Raises:
            UnhandledOutcomeException: A hook returned an outcome its phase
                does not accept.
        """
        response = self._response_factory()
        retries = 0
        attempt = 0

        while True:
            attempt += 1
            logger.debug("Rack pass %d started with %d middleware", attempt, len(self._middleware))

            source, outcome = self._request_phase(request)
            if isinstance(outcome, Synthetic):
                logger.info(
                    "Synthetic response from %s on pass %d", type(source).__name__, attempt
                )
                response = outcome.response
                break

            if not isinstance(outcome, Retry):
                source, outcome = self._response_phase(response)
                if not isinstance(outcome, Retry):
                    break

            retries += 1
            logger.debug(
                "Retry %d/%d requested by %s", retries, self._max_retries, type(source).__name__
            )
            if retries >= self._max_retries:
                logger.warning(
                    "Retries exhausted after %d attempts, returning current response", retries
                )
                break

        if retries > 0:
            response.headers[self._retry_header] = str(retries)

        return response

    def _request_phase(self, request: Any) -> Tuple[Optional[Middleware], Outcome]:
        for middleware in self._middleware:
            outcome = middleware.on_request(request)
            if isinstance(outcome, Continue):
                continue
            if isinstance(outcome, (Retry, Synthetic)):
                return middleware, outcome
            raise self._unhandled(middleware, REQUEST_PHASE, outcome)
        return None, CONTINUE

    def _response_phase(self, response: Any) -> Tuple[Optional[Middleware], Outcome]:
        for middleware in reversed(self._middleware):
            outcome = middleware.on_response(response)
            if isinstance(outcome, Continue):
                continue
            if isinstance(outcome, Retry):
                return middleware, outcome
            raise self._unhandled(middleware, RESPONSE_PHASE, outcome)
        return None, CONTINUE

    @staticmethod
    def _unhandled(middleware: Middleware, phase: str, outcome: object) -> UnhandledOutcomeException:
        exc = UnhandledOutcomeException(middleware, phase, outcome)
        logger.error("Aborting rack run: %s", exc.detail_message)
        return exc
