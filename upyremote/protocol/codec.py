"""Base64 codec used to move file bytes through the raw REPL.

Encoding is standard base64 (``A-Z a-z 0-9 + /``, ``=`` padding). Decoding
is lenient the way the device-side transfer expects: whitespace and padding
are ignored, characters outside the alphabet count as value zero, and a
dangling single character is dropped.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
import string

from ..errors import EncodingError

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"

_FOREIGN = re.compile(f"[^{re.escape(ALPHABET)}]")


def encode(data: bytes) -> str:
    """Encode bytes as a base64 string."""
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    """Decode a base64 string, mapping unrecognized characters to zero.

    Raises:
        EncodingError: only if the cleaned input is still rejected
    """
    cleaned = "".join(ch for ch in text if ch != "=" and not ch.isspace())

    cleaned, foreign = _FOREIGN.subn("A", cleaned)
    if foreign:
        logger.warning(f"Base64 input had {foreign} unrecognized character(s), decoded as zero")

    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    cleaned += "=" * (-len(cleaned) % 4)

    try:
        return base64.b64decode(cleaned)
    except binascii.Error as e:
        raise EncodingError(f"Invalid base64 payload: {e}") from e
