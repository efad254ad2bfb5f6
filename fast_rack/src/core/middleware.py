"""The middleware interface driven by :class:`~fast_rack.src.core.rack.FastRack`."""

from __future__ import annotations

from typing import Any

from fast_rack.src.core.outcome import CONTINUE, Outcome


class Middleware:
    """A unit of pipeline logic with a request hook and a response hook.

    Both hooks return :data:`CONTINUE` by default, so subclasses only override
    the phase they care about. Instances may keep mutable state; the rack
    hands the same instance every pass of a run, including restarts.
    """

    def on_request(self, request: Any) -> Outcome:
        """Inspect or mutate the request.

        May return ``Continue``, ``Retry`` or ``Synthetic(response)``.
        """
        return CONTINUE

    def on_response(self, response: Any) -> Outcome:
        """Inspect or mutate the response.

        May return ``Continue`` or ``Retry``. Anything else is fatal to the run.
        """
        return CONTINUE
