"""Logging setup for the demo app."""

import logging


def configure_logging(level: int = logging.INFO, *, debug: bool = False) -> None:
    """Send records to stderr; ``debug`` also shows cookie decisions."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # Store and middleware log their commits and reflashes at DEBUG
    logging.getLogger("cookieflash").setLevel(logging.DEBUG if debug else level)
