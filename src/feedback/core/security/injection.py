"""SQL and script injection screening.

Two independent pattern families are applied to untrusted strings. The
screen walks decoded JSON trees and query parameters; it reports where a
match happened (for logs) but never what matched.
"""

import re
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from typing import Any, Final

from src.feedback.core.security.validators import is_image_data_url

SQL_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|UNION)\b", re.IGNORECASE),
    re.compile(r"\b(OR|AND)\s+\d+\s*=\s*\d+", re.IGNORECASE),
    re.compile(r"\b(OR|AND)\s+['\"]?\w+['\"]?\s*=\s*['\"]?\w+['\"]?", re.IGNORECASE),
    re.compile(r"(;|\|\||&&)"),
    re.compile(r"(--|/\*|\*/)"),
)

SCRIPT_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE),
)

SQL = "sql"
SCRIPT = "script"


@dataclass(frozen=True)
class Finding:
    """Location and family of a suspicious value."""

    path: str
    family: str


def contains_sql_injection(value: str) -> bool:
    return any(pattern.search(value) for pattern in SQL_PATTERNS)


def contains_script_injection(value: str) -> bool:
    return any(pattern.search(value) for pattern in SCRIPT_PATTERNS)


def scan_value(value: str, *, check_sql: bool = True) -> str | None:
    """Return the matching family name, or None when clean."""
    if contains_script_injection(value):
        return SCRIPT
    if check_sql and contains_sql_injection(value):
        return SQL
    return None


def find_suspicious(
    data: Any,
    sql_exempt_paths: Collection[str] = (),
    _path: str = "",
) -> Finding | None:
    """Walk a decoded JSON value and return the first suspicious string leaf.

    Base64 image data URLs are opaque payloads and are not scanned. Leaves
    whose dotted path is in ``sql_exempt_paths`` are screened for script
    patterns only. List indices do not appear in paths.
    """
    if isinstance(data, str):
        if is_image_data_url(data):
            return None
        family = scan_value(data, check_sql=_path not in sql_exempt_paths)
        return Finding(_path or "$", family) if family else None

    if isinstance(data, dict):
        for key, item in data.items():
            child = f"{_path}.{key}" if _path else str(key)
            finding = find_suspicious(item, sql_exempt_paths, child)
            if finding:
                return finding
        return None

    if isinstance(data, list):
        for item in data:
            finding = find_suspicious(item, sql_exempt_paths, _path)
            if finding:
                return finding
        return None

    return None


def find_suspicious_params(params: Iterable[tuple[str, str]]) -> Finding | None:
    """Screen query-parameter values."""
    for key, value in params:
        family = scan_value(value)
        if family:
            return Finding(key, family)
    return None
