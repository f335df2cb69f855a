"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sqlmodel.sql.sqltypes.AutoString(length=11), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column("owner_email", sqlmodel.sql.sqltypes.AutoString(length=254), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("max_comments", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("notify_email", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("webhook_url", sqlmodel.sql.sqltypes.AutoString(length=2048), nullable=True),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="active",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_code", "projects", ["code"], unique=True)
    op.create_index("ix_projects_owner_email", "projects", ["owner_email"], unique=False)
    op.create_index("ix_projects_expires_at", "projects", ["expires_at"], unique=False)
    op.create_index("ix_projects_status", "projects", ["status"], unique=False)

    # 2. Comments table (project_code is not a foreign key)
    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_code", sqlmodel.sql.sqltypes.AutoString(length=11), nullable=False),
        sa.Column("url", sqlmodel.sql.sqltypes.AutoString(length=2048), nullable=False),
        sa.Column("text", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "priority",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="normal",
        ),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="new",
        ),
        sa.Column("screenshot_key", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column("coordinates_x", sa.Float(), nullable=True),
        sa.Column("coordinates_y", sa.Float(), nullable=True),
        sa.Column("coordinates_width", sa.Float(), nullable=True),
        sa.Column("coordinates_height", sa.Float(), nullable=True),
        sa.Column("user_agent", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("screen_resolution", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_project_code", "comments", ["project_code"], unique=False)
    op.create_index("ix_comments_status", "comments", ["status"], unique=False)
    op.create_index("ix_comments_created_at", "comments", ["created_at"], unique=False)
    op.create_index(
        "ix_comments_project_code_created_at",
        "comments",
        ["project_code", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_comments_project_code_created_at", table_name="comments")
    op.drop_index("ix_comments_created_at", table_name="comments")
    op.drop_index("ix_comments_status", table_name="comments")
    op.drop_index("ix_comments_project_code", table_name="comments")
    op.drop_table("comments")

    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_index("ix_projects_expires_at", table_name="projects")
    op.drop_index("ix_projects_owner_email", table_name="projects")
    op.drop_index("ix_projects_code", table_name="projects")
    op.drop_table("projects")
