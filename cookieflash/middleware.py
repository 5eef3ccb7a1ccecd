"""Application middlewares (flash cookie, etc.)."""

from __future__ import annotations

import inspect
import logging
from typing import Literal, Optional

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import MutableHeaders
from starlette.middleware.errors import ServerErrorMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cookieflash import context
from cookieflash.config import get_settings
from cookieflash.services.store import FlashStore
from cookieflash.utils.asgi import ReplayableReceive, is_form_request

logger = logging.getLogger(__name__)

DEFAULT_MAX_REPLAY_SIZE = 1024 * 1024


class FlashMiddleware:
    """
    Give every HTTP request its own ``FlashStore``.

    The store is bound for the handler (see ``cookieflash.context``) and set
    as ``request.state.flash``. When the response starts, a redirect answering
    a GET request reflashes everything current (if ``auto_reflash``), then the
    store is committed and its cookies are added to the response headers.

    If the handler raises before a response started, the middleware answers
    with the application's 500 handler (or a plain 500) so the store is still
    committed, then re-raises.

    Form bodies up to ``max_replay_size`` bytes are kept for the request, so
    ``flash_inputs()`` can parse a form the handler already read.
    """

    def __init__(
        self,
        app: ASGIApp,
        cookie_name: str = "flash",
        auto_reflash: bool = True,
        path: str = "/",
        domain: Optional[str] = None,
        https_only: bool = False,
        httponly: bool = True,
        same_site: Literal["lax", "strict", "none"] = "lax",
        max_replay_size: Optional[int] = DEFAULT_MAX_REPLAY_SIZE,
    ) -> None:
        self.app = app
        self.cookie_name = cookie_name
        self.auto_reflash = auto_reflash
        self.path = path
        self.domain = domain
        self.https_only = https_only
        self.httponly = httponly
        self.same_site = same_site
        self.max_replay_size = max_replay_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        body = ReplayableReceive(receive, record=is_form_request(scope), max_size=self.max_replay_size)
        store = FlashStore(
            Request(scope, body.reader()),
            self.cookie_name,
            path=self.path,
            domain=self.domain,
            secure=self.https_only,
            httponly=self.httponly,
            samesite=self.same_site,
        )
        scope.setdefault("state", {})["flash"] = store
        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                status = message["status"]
                if self.auto_reflash and 300 <= status < 400 and scope["method"].upper() == "GET":
                    logger.debug("Reflashing current values on %d redirect from %s", status, scope["path"])
                    store.reflash()
                store.commit()
                headers = MutableHeaders(scope=message)
                for value in store.outgoing_cookies:
                    headers.append("Set-Cookie", value)
            await send(message)

        try:
            await context.run(store, self.app, scope, body.reader(), send_wrapper)
        except Exception as exc:
            if not response_started:
                logger.debug("Committing flash cookie on error response for %s", scope["path"])
                with context.bind(store):
                    response = await self._error_response(scope, exc)
                await response(scope, body.reader(), send_wrapper)
            raise

    async def _error_response(self, scope: Scope, exc: Exception) -> Response:
        # Same choice as Starlette's ServerErrorMiddleware, which runs outside us
        app = scope.get("app")
        request = Request(scope)
        if getattr(app, "debug", False):
            return ServerErrorMiddleware(self.app, debug=True).debug_response(request, exc)
        handlers = getattr(app, "exception_handlers", {})
        handler = handlers.get(500) or handlers.get(Exception)
        if handler is None:
            return PlainTextResponse("Internal Server Error", status_code=500)
        if inspect.iscoroutinefunction(handler):
            return await handler(request, exc)
        return await run_in_threadpool(handler, request, exc)


def install_middlewares(app: FastAPI) -> None:
    """Install required middlewares."""
    settings = get_settings()
    app.add_middleware(
        FlashMiddleware,
        cookie_name=settings.cookie_name,
        auto_reflash=settings.auto_reflash,
        path=settings.cookie_path,
        domain=settings.cookie_domain,
        https_only=settings.cookie_secure,
        httponly=settings.cookie_httponly,
        same_site=settings.cookie_samesite,
        max_replay_size=settings.max_replay_size,
    )
