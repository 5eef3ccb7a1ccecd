"""Convert submitted form data to and from a cookie-friendly mapping."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from starlette.datastructures import FormData


def serialize_form_data(form: FormData) -> dict[str, list[str]]:
    """
    Group form entries by name, keeping submission order.

    Only string values are kept. Uploaded files have no cookie representation
    and are left out.
    """
    data: dict[str, list[str]] = {}
    for name, value in form.multi_items():
        if not isinstance(value, str):
            continue
        data.setdefault(name, []).append(value)
    return data


def deserialize_form_data(data: Mapping[str, Sequence[str]]) -> FormData:
    """Rebuild a ``FormData`` from the mapping made by ``serialize_form_data``."""
    items: list[tuple[str, str]] = []
    for name, values in data.items():
        for value in values:
            items.append((name, value))
    return FormData(items)
