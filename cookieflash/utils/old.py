"""Old input lookups for re-populating forms.

All helpers return ``None`` when the previous request flashed no form, so
callers can fall back to their own defaults. Once a form was flashed, a field
missing from it counts as unchecked / not selected: browsers do not submit
unchecked checkboxes.
"""

from __future__ import annotations

from typing import Optional

from cookieflash.flash import get_inputs


def old(name: str) -> Optional[str]:
    """First previously submitted value of ``name``."""
    form = get_inputs()
    if form is None:
        return None
    value = form.get(name)
    if value is None:
        return None
    return str(value)


def old_checked(name: str) -> Optional[bool]:
    """Whether checkbox ``name`` was checked in the previous submission."""
    form = get_inputs()
    if form is None:
        return None
    return bool(form.get(name))


def old_selected(name: str, value: str) -> Optional[bool]:
    """Whether ``value`` was among the submitted values of ``name``."""
    form = get_inputs()
    if form is None:
        return None
    return value in form.getlist(name)
