"""Flash errors, exception handlers and error pages."""

from __future__ import annotations

from typing import Union

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class FlashScopeError(RuntimeError):
    """The flash API was used outside a request handled by ``FlashMiddleware``."""

    def __init__(self, message: str = "FlashStore is not available outside of FlashMiddleware.") -> None:
        super().__init__(message)


def _wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("Accept", "")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Error pages for the demo app.

    Pages extend the base layout, so messages flashed by the previous request
    still show on them. ``FlashMiddleware`` calls the 500 handler itself when a
    route raises, which keeps the flash cookie committed on that path too.
    """
    # Deferred: cookieflash.web reaches this module through the flash helpers
    from cookieflash.web import render

    @app.exception_handler(StarletteHTTPException)
    async def http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> Union[HTMLResponse, JSONResponse]:
        if _wants_json(request):
            return JSONResponse(
                {"detail": exc.detail, "status_code": exc.status_code}, status_code=exc.status_code
            )
        if exc.status_code == 404:
            return render(request, "errors/404.html", {"title": "Not found"}, status_code=404)
        return render(
            request,
            "errors/500.html",
            {"title": f"Error {exc.status_code}", "code": exc.status_code, "detail": exc.detail},
            status_code=exc.status_code,
        )

    @app.exception_handler(Exception)
    async def server_exception(request: Request, exc: Exception) -> HTMLResponse:
        # Also called by ServerErrorMiddleware after FlashMiddleware answered:
        # no side effects here
        return render(request, "errors/500.html", {"title": "Server error"}, status_code=500)
