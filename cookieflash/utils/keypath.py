"""Key-path filters for flashed values.

A key path is an ordered list of string segments, e.g. ``["form", "errors"]``.
Filters select key paths by prefix, so ``["form"]`` matches both
``["form", "errors"]`` and ``["form", "errors", "name"]`` while
``["form", "err"]`` matches neither.

Filters may be written three ways:

- ``"form"``: one single-segment path
- ``["form", "errors"]``: one multi-segment path
- ``[["form", "errors"], ["notice"]]``: several paths
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional, Union

KeyPath = list[str]
KeyFilter = Union[str, Sequence[str], Sequence[Sequence[str]]]


def _is_path(item: object) -> bool:
    return isinstance(item, Sequence) and not isinstance(item, (str, bytes))


def normalize_filters(filters: Optional[KeyFilter]) -> list[KeyPath]:
    """
    Bring a filter expression into its canonical list-of-paths shape.

    >>> normalize_filters("key1")
    [['key1']]
    >>> normalize_filters(["key1", "key2"])
    [['key1', 'key2']]
    >>> normalize_filters([["key1", "sub1"], ["key2"]])
    [['key1', 'sub1'], ['key2']]
    >>> normalize_filters([])
    []
    """
    if filters is None:
        return []
    if isinstance(filters, str):
        return [[filters]]
    if len(filters) == 0:
        return []
    if _is_path(filters[0]):
        return [list(path) for path in filters]
    return [list(filters)]


def matches(key: Sequence[str], filters: Optional[KeyFilter]) -> bool:
    """True if any filter path is a prefix of ``key``."""
    for path in normalize_filters(filters):
        if len(path) <= len(key) and list(key[: len(path)]) == path:
            return True
    return False


def namespaced(filters: Optional[KeyFilter], *prefix: str) -> list[KeyPath]:
    """Normalize ``filters`` and prepend ``prefix`` to every path."""
    return [[*prefix, *path] for path in normalize_filters(filters)]
