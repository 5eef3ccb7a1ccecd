from __future__ import annotations

from typing import Callable, Optional

import pytest
from starlette.requests import Request


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build a bare Starlette request with optional cookies and body."""

    def _make(
        cookies: Optional[dict[str, str]] = None,
        body: bytes = b"",
        content_type: Optional[str] = None,
        method: str = "POST",
    ) -> Request:
        headers: list[tuple[bytes, bytes]] = []
        if cookies:
            cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
            headers.append((b"cookie", cookie_header.encode("latin-1")))
        if content_type:
            headers.append((b"content-type", content_type.encode("latin-1")))

        async def receive() -> dict:
            return {"type": "http.request", "body": body, "more_body": False}

        scope = {
            "type": "http",
            "method": method,
            "path": "/",
            "query_string": b"",
            "headers": headers,
        }
        return Request(scope, receive)

    return _make
