"""Jinja integration and helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from cookieflash.context import is_bound
from cookieflash.flash import get_flash
from cookieflash.utils.old import old, old_checked, old_selected

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals.update(
    get_flash=get_flash,
    old=old,
    old_checked=old_checked,
    old_selected=old_selected,
)

MESSAGE_LEVELS = ("error", "warning", "success", "info")


def flashed_messages() -> list[dict[str, Any]]:
    """Messages flashed under the standard levels, for the base layout."""
    if not is_bound():
        # Error pages may be rendered after the request scope was left
        return []
    return [
        {"level": level, "text": text}
        for level in MESSAGE_LEVELS
        for text in get_flash(level)
    ]


def render(
    request: Request, name: str, context: Optional[dict[str, Any]] = None, status_code: int = 200
) -> HTMLResponse:
    """Render a template injecting the messages flashed by the previous request."""
    ctx: dict[str, Any] = {
        "messages": flashed_messages(),
    }
    if context:
        ctx.update(context)
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)
