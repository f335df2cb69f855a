"""Notification utilities - email and webhooks."""

from src.feedback.core.notifications.email import send_new_comment_email
from src.feedback.core.notifications.webhook import post_webhook

__all__ = [
    "post_webhook",
    "send_new_comment_email",
]
