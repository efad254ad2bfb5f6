"""Trace context management utilities.

Context variables carrying the trace id and the per-request log context, so
that any logger used while a rack runs can tag its records without the
request being threaded through every call.
"""

from __future__ import annotations

import contextvars
import os
import uuid
from typing import Any, Dict, Optional

from fast_rack.utils.constants import LOG_CONTEXT_FIELDS, SERVICE

trace_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "trace_id", default=None
)

log_context_var: contextvars.ContextVar[Optional[Dict[str, Any]]] = (
    contextvars.ContextVar("log_context", default=None)
)


def generate_trace_id() -> str:
    """Generate a new trace ID of the form ``fast-rack-<env>-<uuid4>``."""
    app_env = os.environ.get("APP_ENV", "local")
    return f"{SERVICE}-{app_env}-{uuid.uuid4()}"


def set_trace_id(trace_id: Optional[str]) -> None:
    trace_id_context.set(trace_id)


def get_trace_id() -> Optional[str]:
    return trace_id_context.get()


def get_trace_id_or_generate() -> str:
    """Get the current trace ID or generate and store a new one."""
    trace_id = get_trace_id()
    if trace_id is None:
        trace_id = generate_trace_id()
        set_trace_id(trace_id)
    return trace_id


def set_log_context(log_context: Optional[Dict[str, Any]]) -> None:
    log_context_var.set(log_context)


def default_log_context() -> Dict[str, Any]:
    return {field: "unknown" for field in LOG_CONTEXT_FIELDS}


def get_log_context() -> Dict[str, Any]:
    """Get the log context, falling back to all-``unknown`` fields."""
    context = log_context_var.get()
    if context is None:
        return default_log_context()
    return context
