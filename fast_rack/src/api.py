"""FastAPI host adapter for fast-rack.

Serves a rack over HTTP: each inbound request is copied into a mutable
:class:`RackRequest`, run through a freshly built rack in the threadpool,
and the rack's response is sent back as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from fastapi import FastAPI, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import MutableHeaders, State
from starlette.responses import JSONResponse

from fast_rack.src.core.exceptions.exceptions import AppException, AppExceptionCode
from fast_rack.src.core.rack import FastRack
from fast_rack.src.settings import settings
from fast_rack.utils.pylogger import configure_logging, get_python_logger

logger = get_python_logger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@dataclass
class RackRequest:
    """Mutable snapshot of an inbound HTTP request handed to ``on_request``."""

    method: str = "GET"
    path: str = "/"
    headers: MutableHeaders = field(default_factory=MutableHeaders)
    query_params: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    state: State = field(default_factory=State)

    @classmethod
    async def from_starlette(cls, request: Request) -> "RackRequest":
        """Copy a Starlette request, reading its body up front."""
        return cls(
            method=request.method,
            path=request.url.path,
            headers=MutableHeaders(raw=list(request.headers.raw)),
            query_params=dict(request.query_params),
            body=await request.body(),
        )


def create_app(
    rack_factory: Callable[[], FastRack],
    configure_logs: bool = True,
    log_level: Optional[str] = None,
) -> FastAPI:
    """Build a FastAPI app that answers every path and method with a rack run.

    Args:
        rack_factory: Called once per inbound request. Returning a fresh rack
            and fresh middleware keeps runs from sharing state.
        configure_logs: Whether to install the package logging configuration.
        log_level: Overrides ``settings.PYTHON_LOG_LEVEL``.

    Returns:
        FastAPI: The configured application.
    """
    if configure_logs:
        configure_logging(
            log_level=log_level or settings.PYTHON_LOG_LEVEL,
            enable_file_logging=settings.ENABLE_FILE_LOGGING,
        )

    app = FastAPI()
    app.logger = logger

    @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def handle(request: Request):
        rack_request = await RackRequest.from_starlette(request)
        rack = rack_factory()
        return await run_in_threadpool(rack.run, rack_request)

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        """Render an AppException with its own status and error code."""
        logger.warning(
            "App exception occurred for request_method=%s, request_path=%s, error=%s",
            request.method,
            request.url.path,
            exc,
        )
        return JSONResponse(
            status_code=exc.response_code,
            content={
                "detail_message": exc.detail_message,
                "message": exc.message,
                "error_code": exc.error_code,
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Render any other exception as an internal server error."""
        logger.exception(
            "Unhandled exception occurred for request_method=%s, request_path=%s, error=%s",
            request.method,
            request.url.path,
            exc,
        )
        return JSONResponse(
            status_code=AppExceptionCode.INTERNAL_SERVER_ERROR.response_code,
            content={
                "detail_message": str(exc),
                "message": AppExceptionCode.INTERNAL_SERVER_ERROR.message,
                "error_code": AppExceptionCode.INTERNAL_SERVER_ERROR.error_code,
            },
        )

    return app
