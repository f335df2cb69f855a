"""Email client using Resend API."""

import html
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

import resend

from src.feedback.core.config import get_settings
from src.feedback.core.logging import get_logger

logger = get_logger(__name__)

# Thread pool for email sending with timeout support
_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")

_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_QUOTE_STYLE = "border-left: 4px solid #2563eb; margin: 16px 0; padding: 8px 16px; background: #f8fafc;"
_MUTED_STYLE = "color: #666; font-size: 14px;"


def send_new_comment_email(
    to: str,
    project_name: str,
    project_code: str,
    comment_text: str,
    page_url: str,
    priority: str,
) -> bool:
    """Tell a project owner about a new comment.

    ``project_name`` and ``comment_text`` are expected HTML-escaped, as they
    are stored.

    Returns:
        True if the email was sent (or logged without an API key), False on error
    """
    settings = get_settings()

    if not settings.resend_api_key:
        logger.warning(
            "RESEND_API_KEY not set - email not sent",
            to=to,
            email_type="new_comment",
            project_code=project_code,
        )
        return True

    resend.api_key = settings.resend_api_key

    def _send() -> None:
        resend.Emails.send(
            {
                "from": settings.email_from,
                "to": [to],
                "subject": f"New {priority} priority feedback on {project_code}",
                "html": _get_new_comment_html(
                    project_name, project_code, comment_text, page_url, priority
                ),
            }
        )

    try:
        future = _email_executor.submit(_send)
        future.result(timeout=settings.email_send_timeout_seconds)
        logger.info("New comment email sent", to=to, project_code=project_code)
        return True
    except FuturesTimeoutError:
        logger.error("Email send timed out", to=to, timeout=settings.email_send_timeout_seconds)
        return False
    except Exception as e:
        logger.error("Failed to send new comment email", to=to, error=str(e))
        return False


def _get_new_comment_html(
    project_name: str, project_code: str, comment_text: str, page_url: str, priority: str
) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    <h1 style="color: #2563eb; margin-bottom: 24px;">New feedback on {project_name}</h1>
    <p>A visitor left a <strong>{priority}</strong> priority comment on project
    <code>{project_code}</code>.</p>
    <blockquote style="{_QUOTE_STYLE}">{comment_text}</blockquote>
    <p style="{_MUTED_STYLE}">Page: {html.escape(page_url)}</p>
</body>
</html>"""
