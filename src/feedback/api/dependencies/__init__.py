"""FastAPI dependency injection definitions.

Re-exports all dependencies for convenience.
"""

from src.feedback.api.dependencies.app_state import (
    AppSettings,
    BlobStoreDep,
    get_app_settings,
    get_blob_store,
)
from src.feedback.api.dependencies.auth import (
    ApiKey,
    OwnerEmail,
    require_api_key,
    require_owner_email,
)
from src.feedback.api.dependencies.db import DBSession, get_db_session
from src.feedback.api.dependencies.services import (
    FeedbackServiceDep,
    get_comment_service,
    get_feedback_service,
    get_project_service,
)

__all__ = [
    # App state
    "AppSettings",
    "BlobStoreDep",
    "get_app_settings",
    "get_blob_store",
    # Auth
    "ApiKey",
    "OwnerEmail",
    "require_api_key",
    "require_owner_email",
    # Database
    "DBSession",
    "get_db_session",
    # Services
    "FeedbackServiceDep",
    "get_comment_service",
    "get_feedback_service",
    "get_project_service",
]
