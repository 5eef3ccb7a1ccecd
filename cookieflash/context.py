"""Request-scoped access to the active FlashStore.

The store is held in a ``ContextVar``: task-local under asyncio, and copied
into worker threads when Starlette runs sync endpoints in its threadpool.
Concurrent requests each see their own store.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from cookieflash.errors import FlashScopeError

if TYPE_CHECKING:
    from cookieflash.services.store import FlashStore

T = TypeVar("T")

_current_store: ContextVar[Optional["FlashStore"]] = ContextVar("cookieflash_store", default=None)


async def run(store: FlashStore, callback: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
    """Await ``callback`` with ``store`` bound as the active store."""
    with bind(store):
        return await callback(*args, **kwargs)


@contextmanager
def bind(store: FlashStore) -> Iterator[FlashStore]:
    """Bind ``store`` for the body of the ``with`` block."""
    token = _current_store.set(store)
    try:
        yield store
    finally:
        _current_store.reset(token)


def get_current() -> FlashStore:
    """
    Return the active store.

    Raises ``FlashScopeError`` when called outside an active request scope.
    """
    store = _current_store.get()
    if store is None:
        raise FlashScopeError()
    return store


def is_bound() -> bool:
    return _current_store.get() is not None
