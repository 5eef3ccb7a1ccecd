"""Web routes (HTML): a form that re-populates itself after a failed submit."""

from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from cookieflash.flash import flash, flash_inputs
from cookieflash.web import render

NAME_MIN_LENGTH = 5

router = APIRouter()


@router.get("/", response_class=HTMLResponse, tags=["web"])
def index(request: Request) -> HTMLResponse:
    """Render home page."""
    return render(request, "index.html", {"title": "cookieflash demo"})


@router.post("/submit", tags=["web"])
async def submit(name: str = Form(""), newsletter: Optional[str] = Form(None)) -> RedirectResponse:
    """Validate the form; on error flash it back together with a message."""
    if len(name) < NAME_MIN_LENGTH:
        await flash_inputs()
        flash("error", f"Name is required and must be at least {NAME_MIN_LENGTH} characters long")
        return RedirectResponse("/", status_code=303)

    flash("success", "Form submitted successfully")
    if newsletter:
        flash("info", f"{name} subscribed to the newsletter")
    return RedirectResponse("/", status_code=303)
