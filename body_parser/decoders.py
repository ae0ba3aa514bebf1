from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl

from .exceptions import DecodeError

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

logger = logging.getLogger(__name__)


def decode_raw(body: bytes) -> bytes:
    return body


def decode_text(body: bytes) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning("Body is not valid UTF-8: %s", e)
        raise DecodeError("Body is not valid UTF-8 text") from e


def decode_json(body: bytes) -> Any:
    """
    Decodes a JSON body.  An empty body decodes to an empty object rather than
    being an error.
    """
    if not body:
        return {}

    try:
        return json.loads(body)
    except (ValueError, RecursionError) as e:
        # Covers JSONDecodeError, UnicodeDecodeError and too-deeply nested
        # arrays or objects.
        logger.warning("Invalid JSON body: %s", e)
        raise DecodeError(f"Invalid JSON body: {e}") from e


def decode_urlencoded(body: bytes) -> dict[str, str]:
    """
    Decodes an ``application/x-www-form-urlencoded`` body into a dictionary.

    Some details on how values are handled:
        - "+" is decoded as a space and percent-escapes are decoded as UTF-8.
        - Fields without an equals sign (e.g. "...&name&...") are kept, with
          an empty value.
        - If a name appears more than once the last value wins, but the name
          keeps the position where it first appeared.
    """
    text = decode_text(body)
    return dict(parse_qsl(text, keep_blank_values=True))
