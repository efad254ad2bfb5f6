"""Pipeline outcomes returned by middleware hooks.

An outcome is a plain value, never an exception: the rack decides whether to
continue, restart or short-circuit by inspecting it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Continue:
    """Proceed to the next middleware."""


@dataclass(frozen=True)
class Retry:
    """Abandon the current pass and restart the pipeline from the first middleware."""


@dataclass(frozen=True)
class Synthetic:
    """Replace the in-flight response and end the request phase.

    Only valid from ``on_request``.
    """

    response: Any


Outcome = Union[Continue, Retry, Synthetic]

CONTINUE = Continue()
RETRY = Retry()
