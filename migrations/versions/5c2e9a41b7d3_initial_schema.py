"""initial schema

Revision ID: 5c2e9a41b7d3
Revises:
Create Date: 2026-10-19 09:12:44.318502

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c2e9a41b7d3"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create sessions, ideas, comments and the vote ledger."""
    op.create_table(
        "user_sessions",
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("has_submitted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("upvotes_given", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reward_upvotes_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("active_duration_ms", sa.BigInteger(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("session_id"),
    )

    op.create_table(
        "ideas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("use_case", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=False, server_default="other"),
        sa.Column("tools", sa.Text(), nullable=True),
        sa.Column("link_url", sa.Text(), nullable=True),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ideas_votes", "ideas", ["votes"])
    op.create_index("ix_ideas_session_id", "ideas", ["session_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("idea_id", sa.Integer(), nullable=False),
        sa.Column("parent_comment_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Text(), nullable=True),
        sa.Column("session_id", sa.Text(), nullable=True),
        sa.Column("anonymous_name", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(user_id IS NOT NULL AND session_id IS NULL AND anonymous_name IS NULL)"
            " OR (user_id IS NULL AND session_id IS NOT NULL AND anonymous_name IS NOT NULL)",
            name="ck_comments_single_author",
        ),
        sa.ForeignKeyConstraint(["idea_id"], ["ideas.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_idea_id", "comments", ["idea_id"])

    op.create_table(
        "vote_ledger",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("voter_session_id", sa.Text(), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("target_kind", sa.Text(), nullable=False),
        sa.Column("vote_type", sa.Text(), nullable=False),
        sa.Column("voter_address", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("vote_type IN ('up', 'down')", name="ck_vote_ledger_vote_type"),
        sa.CheckConstraint(
            "target_kind IN ('idea', 'comment')",
            name="ck_vote_ledger_target_kind",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "voter_session_id",
            "target_id",
            "target_kind",
            name="uq_vote_ledger_voter_target",
        ),
    )
    op.create_index("ix_vote_ledger_target", "vote_ledger", ["target_kind", "target_id"])
    op.create_index(
        "ix_vote_ledger_address_created",
        "vote_ledger",
        ["voter_address", "created_at"],
    )

    op.create_table(
        "reward_credits",
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("target_kind", sa.Text(), nullable=False),
        sa.Column("credited_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("session_id", "target_id", "target_kind"),
    )

    op.create_table(
        "vote_audit_flags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("voter_session_id", sa.Text(), nullable=False),
        sa.Column("voter_address", sa.Text(), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("target_kind", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vote_audit_flags_address", "vote_audit_flags", ["voter_address"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_vote_audit_flags_address", table_name="vote_audit_flags")
    op.drop_table("vote_audit_flags")
    op.drop_table("reward_credits")
    op.drop_index("ix_vote_ledger_address_created", table_name="vote_ledger")
    op.drop_index("ix_vote_ledger_target", table_name="vote_ledger")
    op.drop_table("vote_ledger")
    op.drop_index("ix_comments_idea_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_ideas_session_id", table_name="ideas")
    op.drop_index("ix_ideas_votes", table_name="ideas")
    op.drop_table("ideas")
    op.drop_table("user_sessions")
