"""Demo application entrypoint and composition."""

from typing import Optional

from fastapi import FastAPI

from cookieflash.config import get_settings
from cookieflash.errors import register_exception_handlers
from cookieflash.logging import configure_logging
from cookieflash.middleware import install_middlewares
from cookieflash.routes import health, home
from cookieflash.routes import infra as infra_routes


def create_app(*, force_debug: Optional[bool] = None) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    force_debug:
        - None: use settings.debug.
        - True: enable debug mode.
        - False: force non-debug mode (for 500.html testing).
    """
    # Clear cached settings to ensure fresh config on app creation (tests with monkeypatch)
    get_settings.cache_clear()
    settings = get_settings()

    debug = settings.debug if force_debug is None else bool(force_debug)
    configure_logging(debug=debug)
    app = FastAPI(title=settings.app_name, debug=debug)

    # Middlewares
    install_middlewares(app)

    # Include routers
    app.include_router(health.router)
    app.include_router(home.router)
    app.include_router(infra_routes.router)

    # Error handlers
    register_exception_handlers(app)

    return app


app = create_app()
