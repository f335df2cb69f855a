"""structlog setup shared by the API and the Temporal worker.

Log lines are JSON in deployed environments and colored key/value output
with ``DEBUG=true``. Owner email addresses are masked by a processor, so
call sites may pass them freely as ``to=`` or ``owner_email=``.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

EMAIL_KEYS = frozenset({"to", "owner_email", "email"})

_NOISY_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "temporalio": logging.INFO,
}


def mask_email(address: str) -> str:
    """``owner@example.com`` -> ``o***@example.com``."""
    local, sep, domain = address.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


def mask_emails(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in EMAIL_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = mask_email(value)
    return event_dict


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )
    for name, level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    renderer: structlog.typing.Processor = (
        structlog.dev.ConsoleRenderer(colors=True) if debug else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            mask_emails,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(request_id: str | None, **extra: str) -> None:
    """Attach request_id (and any extras) to every log line of this request."""
    if request_id:
        bind_contextvars(request_id=request_id)
    if extra:
        bind_contextvars(**extra)


def clear_request_context() -> None:
    clear_contextvars()
