"""Infra/diagnostic routes (non-prod helpers)."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import RedirectResponse, Response

from cookieflash.config import get_settings
from cookieflash.flash import flash

router = APIRouter()


@router.get("/demo/flash", tags=["infra"])
def demo_flash(msg: str = "Operation completed") -> Response:
    """Flash a one-time message and redirect to home."""
    flash("success", msg)
    return RedirectResponse("/", status_code=303)


@router.get("/demo/bounce", tags=["infra"])
def demo_bounce(to: str = "/") -> Response:
    """Redirect without flashing; current messages survive the hop."""
    if not to.startswith("/"):
        raise HTTPException(400, "Only local redirects are allowed")
    return RedirectResponse(to, status_code=303)


@router.get("/debug/error", tags=["infra"])
def debug_error() -> None:
    """Intentionally raise an error to exercise the 500 handler in non-prod."""
    settings = get_settings()
    if settings.env == "prod":
        raise HTTPException(404, "Not found")
    raise RuntimeError("Simulated failure for testing purposes")
