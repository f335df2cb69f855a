"""Project factory for test data generation."""

from datetime import timedelta
from uuid import uuid4

from polyfactory import Use

from src.feedback.core import codes
from src.feedback.models import Project, ProjectStatus
from src.feedback.models.base import utc_now
from tests.factories.base import BaseFactory
from tests.helpers import OWNER_EMAIL


class ProjectFactory(BaseFactory):
    """Factory for generating Project test data."""

    __model__ = Project

    id = Use(uuid4)
    code = Use(codes.generate)
    name = Use(lambda: f"Test Project {uuid4().hex[-6:]}")
    owner_email = OWNER_EMAIL
    created_at = Use(utc_now)
    expires_at = Use(lambda: utc_now() + timedelta(days=30))
    max_comments = 100
    notify_email = False
    webhook_url = None
    status = ProjectStatus.ACTIVE.value

    @classmethod
    def expired(cls, **kwargs):
        """An active-status project whose expiry time has passed."""
        return cls.build(expires_at=utc_now() - timedelta(days=1), **kwargs)

    @classmethod
    def inactive(cls, **kwargs):
        return cls.build(status=ProjectStatus.INACTIVE.value, **kwargs)
