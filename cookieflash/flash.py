"""Flash helpers for request handlers and templates.

Each helper works on the store bound by ``FlashMiddleware`` for the current
request and raises ``FlashScopeError`` when there is none.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional, Union

from pydantic import JsonValue
from starlette.datastructures import FormData

from cookieflash.context import get_current
from cookieflash.services.store import FlashStore
from cookieflash.utils.keypath import KeyFilter


def get_flash_store() -> FlashStore:
    """Return the flash store of the current request."""
    return get_current()


def flash(key: Union[str, Sequence[str]], value: JsonValue) -> None:
    """Flash ``value`` under ``key`` for the next request."""
    get_current().flash(key, value)


async def flash_inputs(form: Optional[FormData] = None) -> None:
    """Flash the submitted form so the next request can re-populate it."""
    await get_current().flash_inputs(form)


def get_flash(key_filter: KeyFilter) -> list[JsonValue]:
    """Values flashed by the previous request under ``key_filter``."""
    return get_current().get(key_filter)


def reflash(
    *,
    append: bool = True,
    pick: Optional[KeyFilter] = None,
    omit: Optional[KeyFilter] = None,
) -> None:
    """Carry (some of) the previous request's values on to the next one."""
    get_current().reflash(append=append, pick=pick, omit=omit)


def get_inputs() -> Optional[FormData]:
    return get_current().get_inputs()
