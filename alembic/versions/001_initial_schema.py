"""Initial schema — users, movies, partner_requests, swipes, matches.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("email", sa.String, nullable=False),
        sa.Column("password_hash", sa.String, nullable=False),
        sa.Column("display_name", sa.String, nullable=True),
        sa.Column("avatar_url", sa.String, nullable=True),
        sa.Column(
            "partner_id",
            sa.Uuid,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            comment="Linked partner; mirrored on the partner's row",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_partner_id", "users", ["partner_id"])

    # ── 2. movies (catalog) ─────────────────────────────────────────
    op.create_table(
        "movies",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("poster_url", sa.String, nullable=True),
        sa.Column("genre", sa.String, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    # ── 3. partner_requests ─────────────────────────────────────────
    op.create_table(
        "partner_requests",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "requester_id",
            sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "recipient_id",
            sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.String,
            nullable=False,
            comment="pending / accepted / rejected / dissolved",
        ),
        sa.Column("pair_key", sa.String, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_partner_requests_requester_id", "partner_requests", ["requester_id"]
    )
    op.create_index(
        "ix_partner_requests_recipient_id", "partner_requests", ["recipient_id"]
    )
    # At most one pending/accepted request per unordered pair
    op.create_index(
        "uq_partner_request_active_pair",
        "partner_requests",
        ["pair_key"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'accepted')"),
    )

    # ── 4. swipes ───────────────────────────────────────────────────
    op.create_table(
        "swipes",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "media_id",
            sa.Integer,
            sa.ForeignKey("movies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("liked", sa.Boolean, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
            comment="Refreshed whenever the user swipes the same item again",
        ),
        sa.UniqueConstraint("user_id", "media_id", name="uq_swipe_user_media"),
    )
    op.create_index("ix_swipes_user_id", "swipes", ["user_id"])

    # ── 5. matches ──────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "media_id",
            sa.Integer,
            sa.ForeignKey("movies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user1_id",
            sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user2_id",
            sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "media_id", "user1_id", "user2_id", name="uq_match_pair_media"
        ),
    )
    op.create_index("ix_matches_media_id", "matches", ["media_id"])
    op.create_index("ix_matches_user1_id", "matches", ["user1_id"])
    op.create_index("ix_matches_user2_id", "matches", ["user2_id"])


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_table("matches")
    op.drop_table("swipes")

    op.drop_index("uq_partner_request_active_pair", table_name="partner_requests")
    op.drop_table("partner_requests")

    op.drop_table("movies")
    op.drop_table("users")
