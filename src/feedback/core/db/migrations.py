"""Migration runner shared by deploy scripts and tests.

Run with:
    python -m src.feedback.core.db.migrations
"""

from alembic import command
from alembic.config import Config


def run_migrations_sync(config_path: str = "alembic.ini") -> None:
    """Upgrade the database to the latest revision."""
    command.upgrade(Config(config_path), "head")


if __name__ == "__main__":
    run_migrations_sync()
