from __future__ import annotations

from typing import Mapping, Optional

from starlette.responses import Response

from fast_rack.src.core.middleware import Middleware
from fast_rack.src.core.outcome import Synthetic


class SyntheticResponseMiddleware(Middleware):
    """Answer every request with a fixed response instead of running the rest of the rack."""

    def __init__(
        self,
        content: str | bytes = b"",
        status_code: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        media_type: Optional[str] = None,
    ):
        self.content = content
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.media_type = media_type

    def on_request(self, request):
        # A fresh response each time; the rack mutates whatever it returns.
        response = Response(
            content=self.content,
            status_code=self.status_code,
            headers=self.headers,
            media_type=self.media_type,
        )
        return Synthetic(response)
