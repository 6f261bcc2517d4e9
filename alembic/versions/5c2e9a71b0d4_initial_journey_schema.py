"""Initial journey schema

Revision ID: 5c2e9a71b0d4
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c2e9a71b0d4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    """Create users, projects, journey entries, rollups and sibling collections."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        _created_at(),
    )
    op.create_index("ix_users_username", "users", ["username"])

    op.create_table(
        "projects",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "owner_id", sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("collaboration_mode", sa.String(20), nullable=True),
        _created_at(),
    )
    op.create_index("ix_projects_owner", "projects", ["owner_id"])

    op.create_table(
        "collaborators",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "project_id", sa.String(64),
            sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "user_id", sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("source", sa.String(30), nullable=False, server_default="owner"),
        _created_at(),
        sa.UniqueConstraint("project_id", "user_id", name="uq_collaborators_project_user"),
    )
    op.create_index("ix_collaborators_user", "collaborators", ["user_id"])

    op.create_table(
        "journey_entries",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "project_id", sa.String(64),
            sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "author_id", sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("mood", sa.String(30), nullable=True),
        sa.Column("energy", sa.Integer(), nullable=True),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("skills_learned", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_milestone", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("milestone_type", sa.String(30), nullable=True),
        sa.Column("time_spent", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("approved_by", sa.String(64), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "timestamp", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_journey_entries_project_time", "journey_entries", ["project_id", "timestamp"]
    )
    op.create_index(
        "ix_journey_entries_project_author_created",
        "journey_entries",
        ["project_id", "author_id", "created_at"],
    )
    op.create_index(
        "ix_journey_entries_author_time", "journey_entries", ["author_id", "timestamp"]
    )
    op.create_index(
        "ix_journey_entries_project_status", "journey_entries", ["project_id", "status"]
    )

    op.create_table(
        "journey_stats",
        sa.Column(
            "project_id", sa.String(64),
            sa.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("total_entries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_time_spent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("milestones_completed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("skills_learned", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("mood_distribution", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column(
            "entry_type_distribution", postgresql.JSONB(),
            nullable=False, server_default="{}",
        ),
        sa.Column("average_energy", sa.Float(), nullable=False, server_default="5"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_entry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("kind", sa.String(30), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("ref_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("ref_collection", sa.String(50), nullable=False, server_default=""),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("ix_notifications_user_time", "notifications", ["user_id", "created_at"])

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("related_entity", sa.String(200), nullable=False, server_default=""),
        sa.Column("related_entity_id", sa.String(64), nullable=True),
        _created_at(),
    )
    op.create_index("ix_activities_user_action", "activities", ["user_id", "action_type"])

    op.create_table(
        "connections",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("follower_id", sa.String(64), nullable=False),
        sa.Column("following_id", sa.String(64), nullable=False),
        _created_at(),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_connections_pair"),
    )
    op.create_index("ix_connections_following", "connections", ["following_id"])

    op.create_table(
        "journey_subscriptions",
        sa.Column(
            "project_id", sa.String(64),
            sa.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "user_id", sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
        ),
        _created_at(),
    )


def downgrade() -> None:
    """Drop every journey table."""
    op.drop_table("journey_subscriptions")
    op.drop_index("ix_connections_following", table_name="connections")
    op.drop_table("connections")
    op.drop_index("ix_activities_user_action", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_notifications_user_time", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("journey_stats")
    op.drop_index("ix_journey_entries_project_status", table_name="journey_entries")
    op.drop_index("ix_journey_entries_author_time", table_name="journey_entries")
    op.drop_index("ix_journey_entries_project_author_created", table_name="journey_entries")
    op.drop_index("ix_journey_entries_project_time", table_name="journey_entries")
    op.drop_table("journey_entries")
    op.drop_index("ix_collaborators_user", table_name="collaborators")
    op.drop_table("collaborators")
    op.drop_index("ix_projects_owner", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
