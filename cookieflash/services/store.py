"""Cookie-backed flash store for a single request."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal, Optional, Union, overload

from pydantic import JsonValue, StrictStr, TypeAdapter, ValidationError
from starlette.datastructures import FormData
from starlette.requests import Request
from starlette.responses import Response

from cookieflash.schemas import (
    FlashContainer,
    FlashValue,
    decode_container,
    empty_container,
    encode_container,
)
from cookieflash.utils.formdata import deserialize_form_data, serialize_form_data
from cookieflash.utils.keypath import KeyFilter, matches, namespaced, normalize_filters

logger = logging.getLogger(__name__)

# Reserved top-level key segments
EXT_NAMESPACE = "ext"
INPUTS_KEY = "inputs"

_inputs_adapter = TypeAdapter(dict[str, list[StrictStr]])


def _reflash_paths(filters: Optional[KeyFilter]) -> list[list[str]]:
    """
    Reflash filter paths as stored keys.

    Paths are namespaced like user keys, except that a path of exactly
    ``inputs`` also addresses the form snapshot.
    """
    paths = []
    for path in normalize_filters(filters):
        if path == [INPUTS_KEY]:
            paths.append([INPUTS_KEY])
        paths.append([EXT_NAMESPACE, *path])
    return paths


class FlashStore:
    """
    Flash messages and old input carried across one request cycle.

    The store reads ``current`` from the incoming cookie when it is created
    and removes that cookie from the request, so handlers never see it twice.
    Writes go to ``next``, which ``commit()`` turns into the outgoing cookie.

    Example::

        store.flash("success", "Saved")
        store.flash(["form", "errors"], "Name is too short")

        store.get()                    # the whole current container
        store.get("success")           # ["Saved"] on the following request
        store.get(["form", "errors"])

        store.reflash(pick="form")     # carry form messages one more cycle
        store.commit()

    User keys live under the ``ext`` namespace. Form snapshots live under the
    reserved ``inputs`` key, so the two never collide.
    """

    def __init__(
        self,
        request: Request,
        cookie_name: str = "flash",
        *,
        path: str = "/",
        domain: Optional[str] = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: Literal["lax", "strict", "none"] = "lax",
    ) -> None:
        self.request = request
        self.cookie_name = cookie_name
        self._cookie_options = {
            "path": path,
            "domain": domain,
            "secure": secure,
            "httponly": httponly,
            "samesite": samesite,
        }
        self._outgoing: dict[str, str] = {}
        self.next: FlashContainer = empty_container()
        self.current: FlashContainer = self._load()

    def _load(self) -> FlashContainer:
        raw = self._consume_cookie()
        if raw is None:
            return empty_container()
        container = decode_container(raw)
        if not container.valid:
            return empty_container()
        return container

    def _consume_cookie(self) -> Optional[str]:
        """Take the flash cookie out of the request and queue its deletion."""
        raw = self.request.cookies.pop(self.cookie_name, None)
        if raw is None:
            return None

        headers: list[tuple[bytes, bytes]] = []
        for name, value in self.request.scope["headers"]:
            if name.lower() == b"cookie":
                value = self._strip_cookie(value)
                if not value:
                    continue
            headers.append((name, value))
        self.request.scope["headers"] = headers

        self._outgoing[self.cookie_name] = self._cookie_header("", expire=True)
        return raw

    def _strip_cookie(self, header: bytes) -> bytes:
        kept = []
        for chunk in header.decode("latin-1").split(";"):
            name = chunk.split("=", 1)[0].strip()
            if name == self.cookie_name or not chunk.strip():
                continue
            kept.append(chunk.strip())
        return "; ".join(kept).encode("latin-1")

    def _cookie_header(self, value: str, *, expire: bool = False) -> str:
        # Let Starlette format the Set-Cookie value
        response = Response()
        if expire:
            response.delete_cookie(self.cookie_name, **self._cookie_options)
        else:
            response.set_cookie(self.cookie_name, value, **self._cookie_options)
        return response.headers["set-cookie"]

    def _append(self, *values: FlashValue) -> None:
        self.next = FlashContainer(values=[*self.next.values, *values], valid=True)

    def flash(self, key: Union[str, Sequence[str]], value: JsonValue) -> None:
        """Store ``value`` under ``key`` for the next request."""
        segments = [key] if isinstance(key, str) else list(key)
        self._append(FlashValue(key=[EXT_NAMESPACE, *segments], value=value))

    async def flash_inputs(self, form: Optional[FormData] = None) -> None:
        """
        Flash the submitted form so the next request can re-populate it.

        Reads the current request's form unless ``form`` is given. Call it
        once per request: a second call stores a second snapshot, and readers
        only look at the first one.
        """
        if form is None:
            form = await self.request.form()
        self._append(FlashValue(key=[INPUTS_KEY], value=serialize_form_data(form)))

    def get_inputs(self) -> Optional[FormData]:
        """The form snapshot flashed by the previous request, if any."""
        if not self.current.valid:
            return None
        for item in self.current.values:
            if item.key != [INPUTS_KEY]:
                continue
            try:
                data = _inputs_adapter.validate_python(item.value)
            except ValidationError:
                logger.debug("Ignoring malformed input snapshot in flash cookie")
                return None
            return deserialize_form_data(data)
        return None

    @overload
    def get(self) -> FlashContainer: ...

    @overload
    def get(self, key_filter: KeyFilter) -> list[JsonValue]: ...

    def get(self, key_filter: Optional[KeyFilter] = None) -> Union[FlashContainer, list[JsonValue]]:
        """
        Read what the previous request flashed.

        Without a filter the whole current container is returned. With one,
        the values whose key path starts with any of the filter paths.
        """
        if key_filter is None:
            return self.current
        if not self.current.valid:
            return []
        filters = namespaced(key_filter, EXT_NAMESPACE)
        return [item.value for item in self.current.values if matches(item.key, filters)]

    def reflash(
        self,
        *,
        append: bool = True,
        pick: Optional[KeyFilter] = None,
        omit: Optional[KeyFilter] = None,
    ) -> None:
        """
        Carry current values over to the next request.

        ``pick`` keeps only matching keys (nothing given keeps all), then
        ``omit`` drops matching keys. Filters name user keys as in ``get()``;
        ``"inputs"`` also matches the form snapshot, so
        ``reflash(pick="inputs")`` carries only the old input forward.
        ``append=False`` replaces whatever was already flashed during this
        request.
        """
        carried = self._filter_values(self.current.values, pick, omit)
        if append:
            self._append(*carried)
            return
        self.next = FlashContainer(values=carried, valid=True)

    def _filter_values(
        self,
        values: Sequence[FlashValue],
        pick: Optional[KeyFilter],
        omit: Optional[KeyFilter],
    ) -> list[FlashValue]:
        pick_paths = _reflash_paths(pick)
        omit_paths = _reflash_paths(omit)
        kept = []
        for item in values:
            if pick_paths and not matches(item.key, pick_paths):
                continue
            if omit_paths and matches(item.key, omit_paths):
                continue
            kept.append(item)
        return kept

    def commit(self) -> bool:
        """
        Write ``next`` to the outgoing cookie.

        Does nothing unless something was flashed or reflashed. Returns
        whether a cookie was written.
        """
        if not self.next.valid:
            return False
        self._outgoing[self.cookie_name] = self._cookie_header(encode_container(self.next))
        logger.debug("Committed %d flash value(s) to cookie %r", len(self.next.values), self.cookie_name)
        return True

    @property
    def outgoing_cookies(self) -> list[str]:
        """``Set-Cookie`` header values to send with the response."""
        return list(self._outgoing.values())
