"""Flash cookie payload models."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue, StrictBool, StrictStr, ValidationError

logger = logging.getLogger(__name__)


class FlashValue(BaseModel):
    """One flashed value and the key path it is stored under."""

    model_config = ConfigDict(frozen=True)

    key: List[StrictStr] = Field(..., min_length=1)
    value: JsonValue


class FlashContainer(BaseModel):
    """
    The unit stored in the flash cookie.

    ``valid`` is False when the container does not stem from a genuine
    flashed state (no cookie, bad payload). Such a container reads as empty.
    """

    model_config = ConfigDict(frozen=True)

    values: List[FlashValue]
    valid: StrictBool


def empty_container() -> FlashContainer:
    return FlashContainer(values=[], valid=False)


def encode_container(container: FlashContainer) -> str:
    """Dump a container to JSON and make it cookie-safe (base64url, no padding)."""
    raw = container.model_dump_json().encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def decode_container(value: Optional[str]) -> FlashContainer:
    """
    Parse a cookie value produced by ``encode_container``.

    Never raises: a missing, undecodable or schema-invalid value gives an
    empty, invalid container.
    """
    if not value:
        return empty_container()
    try:
        padded = value + "=" * (-len(value) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        return FlashContainer.model_validate_json(raw)
    except (binascii.Error, UnicodeError, ValidationError) as exc:
        logger.debug("Discarding malformed flash cookie: %s", exc.__class__.__name__)
        return empty_container()
