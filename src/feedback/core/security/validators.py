"""Input validators shared by schemas and the defense chain."""

import base64
import binascii
import html
import re
from typing import Final
from urllib.parse import urlparse

EMAIL_REGEX: Final[str] = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
SCREEN_RESOLUTION_REGEX: Final[str] = r"^\d+x\d+$"
# Strict data URL: known image type, base64 alphabet only, correct padding
IMAGE_DATA_URL_REGEX: Final[str] = (
    r"^data:image/(png|jpeg|jpg|webp);base64,"
    r"((?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?)$"
)

MAX_EMAIL_LENGTH: Final[int] = 254
MAX_SCREENSHOT_BYTES: Final[int] = 5 * 1024 * 1024

_EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(EMAIL_REGEX)
_RESOLUTION_PATTERN: Final[re.Pattern[str]] = re.compile(SCREEN_RESOLUTION_REGEX)
_IMAGE_DATA_URL_PATTERN: Final[re.Pattern[str]] = re.compile(IMAGE_DATA_URL_REGEX)
_UUID4_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_valid_email(value: str) -> bool:
    return len(value) <= MAX_EMAIL_LENGTH and _EMAIL_PATTERN.match(value) is not None


def is_https_url(value: str) -> bool:
    """True for absolute https URLs with a host."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme == "https" and bool(parsed.netloc)


def is_http_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_screen_resolution(value: str) -> bool:
    return _RESOLUTION_PATTERN.match(value) is not None


def is_uuid4(value: str) -> bool:
    return _UUID4_PATTERN.match(value) is not None


def sanitize_html(value: str) -> str:
    """Neutralize markup so stored text renders inertly.

    Escapes ``& < > " '`` and also ``/`` so closing tags cannot be formed.
    """
    return html.escape(value, quote=True).replace("/", "&#x2F;")


def is_image_data_url(value: str) -> bool:
    """True when ``value`` is a well-formed base64 image data URL."""
    return _IMAGE_DATA_URL_PATTERN.match(value) is not None


def decode_image_data_url(value: str, max_bytes: int = MAX_SCREENSHOT_BYTES) -> bytes:
    """Decode a base64 image data URL into raw bytes.

    Raises:
        ValueError: if the URL is malformed, not valid base64 or too large.
    """
    match = _IMAGE_DATA_URL_PATTERN.match(value)
    if match is None:
        raise ValueError("Screenshot must be a base64 PNG, JPEG or WebP data URL")

    payload = match.group(2)
    # Reject before decoding: base64 expands 3 bytes into 4 chars
    if len(payload) * 3 // 4 > max_bytes:
        raise ValueError(f"Screenshot exceeds {max_bytes // (1024 * 1024)}MB limit")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Screenshot is not valid base64") from e

    if not data:
        raise ValueError("Screenshot is empty")
    return data
