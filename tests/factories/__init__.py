"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import ProjectFactory, CommentFactory
"""

from tests.factories.base import BaseFactory
from tests.factories.comment import CommentFactory
from tests.factories.project import ProjectFactory

__all__ = [
    "BaseFactory",
    "CommentFactory",
    "ProjectFactory",
]
