"""fast-rack: a two-phase request/response middleware pipeline for edge-style HTTP handlers."""

from __future__ import annotations

from fast_rack.src.core.exceptions.exceptions import (
    AppException,
    AppExceptionCode,
    InvalidMiddlewareException,
    UnhandledOutcomeException,
)
from fast_rack.src.core.middleware import Middleware
from fast_rack.src.core.outcome import CONTINUE, RETRY, Continue, Outcome, Retry, Synthetic
from fast_rack.src.core.rack import FastRack

__all__ = [
    "AppException",
    "AppExceptionCode",
    "CONTINUE",
    "Continue",
    "FastRack",
    "InvalidMiddlewareException",
    "Middleware",
    "Outcome",
    "RETRY",
    "Retry",
    "Synthetic",
    "UnhandledOutcomeException",
]
