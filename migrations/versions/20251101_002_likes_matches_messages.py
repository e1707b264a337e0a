"""Likes, matches, messages and blocks

Revision ID: 20251101_002
Revises: 20251101_001
Create Date: 2025-11-01 10:30:00

Matches are stored once per unordered pair: user_a < user_b is enforced by a
CHECK constraint and (user_a, user_b) is unique, so concurrent reciprocal
likes resolve to a single row via INSERT ... ON CONFLICT DO NOTHING.

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20251101_002"
down_revision: str | None = "20251101_001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Create likes table
    op.create_table(
        "likes",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("from_user", sa.BigInteger(), nullable=False),
        sa.Column("to_user", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("from_user <> to_user", name="chk_like_no_self"),
        sa.ForeignKeyConstraint(["from_user"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["to_user"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("from_user", "to_user", name="uq_likes_pair"),
    )
    op.create_index(op.f("ix_likes_from_user"), "likes", ["from_user"], unique=False)
    op.create_index("idx_likes_to_user", "likes", ["to_user"], unique=False)

    # Create matches table
    op.create_table(
        "matches",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_a", sa.BigInteger(), nullable=False),
        sa.Column("user_b", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_message_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("user_a < user_b", name="chk_match_ordered_pair"),
        sa.ForeignKeyConstraint(["user_a"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_b"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_a", "user_b", name="uq_match_pair"),
    )
    op.create_index(op.f("ix_matches_user_a"), "matches", ["user_a"], unique=False)
    op.create_index(op.f("ix_matches_user_b"), "matches", ["user_b"], unique=False)

    # Create messages table
    op.create_table(
        "messages",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("match_id", sa.BigInteger(), nullable=False),
        sa.Column("sender_id", sa.BigInteger(), nullable=False),
        sa.Column("body", sa.String(length=2000), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_messages_match_order", "messages", ["match_id", "created_at", "id"], unique=False)

    # Create blocks table
    op.create_table(
        "blocks",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("blocker_id", sa.BigInteger(), nullable=False),
        sa.Column("target_id", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["blocker_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("blocker_id", "target_id", name="uq_blocks_pair"),
    )
    op.create_index(op.f("ix_blocks_blocker_id"), "blocks", ["blocker_id"], unique=False)
    op.create_index("idx_blocks_target", "blocks", ["target_id"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_blocks_target", table_name="blocks")
    op.drop_index(op.f("ix_blocks_blocker_id"), table_name="blocks")
    op.drop_table("blocks")
    op.drop_index("idx_messages_match_order", table_name="messages")
    op.drop_table("messages")
    op.drop_index(op.f("ix_matches_user_b"), table_name="matches")
    op.drop_index(op.f("ix_matches_user_a"), table_name="matches")
    op.drop_table("matches")
    op.drop_index("idx_likes_to_user", table_name="likes")
    op.drop_index(op.f("ix_likes_from_user"), table_name="likes")
    op.drop_table("likes")
