"""Injection screening for query parameters and JSON bodies.

Pure ASGI so the body can be read once and replayed to the app unchanged.
"""

import json
from collections.abc import Collection
from urllib.parse import parse_qsl

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.feedback.core.exceptions import (
    PayloadTooLargeError,
    SuspiciousContentError,
    exception_response,
)
from src.feedback.core.logging import get_logger
from src.feedback.core.security import Finding, find_suspicious, find_suspicious_params

logger = get_logger(__name__)

_BODY_METHODS = frozenset({"POST", "PUT"})


class InjectionScreenMiddleware:
    """Reject requests whose query values or JSON string leaves look like
    SQL or script injection.

    Bodies that declare more than ``max_body_bytes`` are left to the size
    stage; streamed bodies that grow past it are answered with 413 here.
    Bodies that are not valid JSON pass through for the route's own
    validation.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_body_bytes: int,
        sql_exempt_fields: Collection[str] = (),
    ):
        self.app = app
        self.max_body_bytes = max_body_bytes
        self.sql_exempt_fields = frozenset(sql_exempt_fields)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query = scope.get("query_string", b"").decode("latin-1")
        if query:
            finding = find_suspicious_params(parse_qsl(query, keep_blank_values=True))
            if finding:
                await self._reject(scope, receive, send, finding, "query parameters")
                return

        if scope["method"] not in _BODY_METHODS or self._declared_too_large(scope):
            await self.app(scope, receive, send)
            return

        try:
            body, messages = await self._read_body(receive)
        except PayloadTooLargeError as e:
            logger.warning("Streamed body over limit", path=scope.get("path"))
            await exception_response(e)(scope, receive, send)
            return

        if body is not None:
            finding = self._screen_body(body)
            if finding:
                await self._reject(scope, receive, send, finding, "request body")
                return

        await self.app(scope, self._replay(messages, receive), send)

    def _declared_too_large(self, scope: Scope) -> bool:
        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    return int(value) > self.max_body_bytes
                except ValueError:
                    return False
        return False

    async def _read_body(self, receive: Receive) -> tuple[bytes | None, list[Message]]:
        """Buffer the body, giving up with PayloadTooLargeError past the cap.

        Chunked uploads carry no Content-Length, so the cap is enforced on
        the bytes actually received.
        """
        messages: list[Message] = []
        size = 0
        while True:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                return None, messages
            size += len(message.get("body", b""))
            if size > self.max_body_bytes:
                raise PayloadTooLargeError()
            if not message.get("more_body", False):
                break
        return b"".join(m.get("body", b"") for m in messages), messages

    def _screen_body(self, body: bytes) -> Finding | None:
        if not body:
            return None
        try:
            data = json.loads(body)
        except ValueError:
            return None
        return find_suspicious(data, self.sql_exempt_fields)

    @staticmethod
    def _replay(messages: list[Message], receive: Receive) -> Receive:
        pending = list(messages)

        async def replay() -> Message:
            if pending:
                return pending.pop(0)
            return await receive()

        return replay

    async def _reject(
        self, scope: Scope, receive: Receive, send: Send, finding: Finding, where: str
    ) -> None:
        logger.warning(
            "Suspicious content rejected",
            location=where,
            field=finding.path,
            family=finding.family,
            path=scope.get("path"),
        )
        response = exception_response(SuspiciousContentError())
        await response(scope, receive, send)
