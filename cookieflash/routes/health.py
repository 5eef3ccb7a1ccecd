"""Health endpoint reporting the flash cookie setup."""

from typing import Any

from fastapi import APIRouter

from cookieflash.config import get_settings

router = APIRouter()


@router.get("/health", tags=["Infra"])
def health() -> dict[str, Any]:
    settings = get_settings()
    return {
        "status": "ok",
        "flash": {"cookie": settings.cookie_name, "auto_reflash": settings.auto_reflash},
    }
