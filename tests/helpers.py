"""Shared helpers for tests."""

import base64
from datetime import datetime, timedelta

from src.feedback.models.base import utc_now

TEST_API_KEY = "test-api-key-0123456789"
OWNER_EMAIL = "owner@example.com"

# Smallest valid PNG: 1x1 transparent pixel
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

BROWSER_UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/126.0 Safari/537.36"


def auth_headers(owner_email: str | None = OWNER_EMAIL) -> dict[str, str]:
    """Headers for API-key protected routes, optionally with the owner email."""
    headers = {"Authorization": f"Bearer {TEST_API_KEY}"}
    if owner_email:
        headers["X-Owner-Email"] = owner_email
    return headers


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None):
        self.now = now or utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
