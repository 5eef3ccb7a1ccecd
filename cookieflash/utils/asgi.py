"""ASGI helpers."""

from __future__ import annotations

from typing import Optional

from starlette.datastructures import Headers
from starlette.types import Message, Receive, Scope

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def is_form_request(scope: Scope) -> bool:
    """Whether the request body is a form the store may need to parse."""
    content_type = Headers(scope=scope).get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() in FORM_CONTENT_TYPES


class ReplayableReceive:
    """
    Record the request body so it can be read more than once.

    Every ``reader()`` replays the recorded ``http.request`` messages from the
    start and then pulls further messages from the server. Messages of other
    types (``http.disconnect``) are passed through unrecorded.

    Nothing is kept when ``record`` is false, and the recording is dropped
    once it grows past ``max_size`` bytes. A reader that would need the
    dropped messages raises ``RuntimeError`` instead of waiting on a body the
    server already delivered.
    """

    def __init__(self, receive: Receive, *, record: bool = True, max_size: Optional[int] = None) -> None:
        self._receive = receive
        self._messages: list[Message] = []
        self._recording = record
        self._max_size = max_size
        self._size = 0
        self._received = 0

    @property
    def recorded(self) -> list[Message]:
        return list(self._messages)

    def _record(self, message: Message) -> None:
        if not self._recording:
            return
        self._size += len(message.get("body", b""))
        if self._max_size is not None and self._size > self._max_size:
            self._recording = False
            self._messages.clear()
            return
        self._messages.append(message)

    def reader(self) -> Receive:
        position = 0

        async def receive() -> Message:
            nonlocal position
            if position < len(self._messages):
                message = self._messages[position]
            elif position < self._received:
                raise RuntimeError("Request body was not kept and cannot be read again.")
            else:
                message = await self._receive()
                if message["type"] != "http.request":
                    return message
                self._received += 1
                self._record(message)
            position += 1
            return message

        return receive
