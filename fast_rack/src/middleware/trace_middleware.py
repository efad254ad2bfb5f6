from __future__ import annotations

import jwt

from fast_rack.src.core.middleware import Middleware
from fast_rack.src.core.outcome import CONTINUE
from fast_rack.src.settings import settings
from fast_rack.utils.pylogger import get_python_logger
from fast_rack.utils.trace_context import generate_trace_id, set_log_context, set_trace_id

logger = get_python_logger(__name__)


def _first_header(headers, *names: str, default: str = "unknown") -> str:
    for name in names:
        value = headers.get(name)
        if value:
            return value
    return default


class TraceMiddleware(Middleware):
    """Generate a trace ID per run and echo it on the response.

    The request phase stores the trace ID and a log context in context
    variables (and on ``request.state`` when present) so every log record of
    the run carries them. The response phase writes the trace header.
    """

    def __init__(self, header_name: str | None = None):
        self.header_name = header_name or settings.TRACE_HEADER
        self.trace_id = None

    def _extract_jwt_claims(self, request) -> dict:
        """Extract JWT claims from the Authorization header without validation."""
        auth_header = request.headers.get("authorization") or request.headers.get(
            "Authorization"
        )
        if not auth_header or not auth_header.startswith("Bearer "):
            return {}

        token = auth_header[len("Bearer "):]
        try:
            # Claims are only used for log fields, never for authorization.
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            logger.debug(f"Failed to extract JWT claims for logging: {e}")
            return {}

    def _create_log_context(self, request) -> dict:
        claims = self._extract_jwt_claims(request)
        headers = request.headers

        return {
            "client_name": _first_header(headers, "x-client-name", "client-name", "x-app-name"),
            "client_version": _first_header(
                headers, "x-client-version", "client-version", "x-app-version"
            ),
            "jwt_client_id": claims.get("azp") or claims.get("client_id") or "unknown",
            "jwt_username": claims.get("preferred_username") or "unknown",
            "http_method": getattr(request, "method", "unknown"),
            "http_path": getattr(request, "path", "unknown"),
            "user_agent": headers.get("user-agent", "unknown"),
        }

    def on_request(self, request):
        # A retried pass keeps the trace ID of the first one.
        if self.trace_id is None:
            self.trace_id = generate_trace_id()
        set_trace_id(self.trace_id)

        log_context = self._create_log_context(request)
        set_log_context(log_context)

        state = getattr(request, "state", None)
        if state is not None:
            state.trace_id = self.trace_id
            state.log_context = log_context

        logger.info(f"Request started: {log_context['http_method']} {log_context['http_path']}")
        return CONTINUE

    def on_response(self, response):
        if self.trace_id is not None:
            response.headers[self.header_name] = self.trace_id
        logger.info(f"Request completed with status {getattr(response, 'status_code', 'unknown')}")
        return CONTINUE
