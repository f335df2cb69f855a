"""Static API-key bearer tokens."""

import secrets
from collections.abc import Iterable

MIN_TOKEN_LENGTH = 8


def parse_bearer(authorization: str) -> str | None:
    """Return the token from ``Bearer <token>``, or None when malformed."""
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def verify_api_key(token: str, api_keys: Iterable[str]) -> bool:
    """Constant-time membership check against the configured keys."""
    matched = False
    # Compare against every key so timing does not reveal the match position
    for key in api_keys:
        if secrets.compare_digest(token.encode(), key.encode()):
            matched = True
    return matched
