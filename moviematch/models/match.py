"""
Movie Matcher — Match and Swipe models.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moviematch.database import Base, utcnow


def ordered_pair(
    user_a_id: uuid.UUID, user_b_id: uuid.UUID
) -> tuple[uuid.UUID, uuid.UUID]:
    """Canonical (user1, user2) ordering for a match row."""
    if str(user_a_id) <= str(user_b_id):
        return user_a_id, user_b_id
    return user_b_id, user_a_id


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("media_id", "user1_id", "user2_id", name="uq_match_pair_media"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    media_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user1_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user2_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # ── Relationships ──────────────────────────────────────────────
    media: Mapped["Movie"] = relationship("Movie", lazy="selectin")
    user1: Mapped["User"] = relationship(
        "User", foreign_keys=[user1_id], lazy="selectin"
    )
    user2: Mapped["User"] = relationship(
        "User", foreign_keys=[user2_id], lazy="selectin"
    )

    @property
    def user1_name(self) -> str | None:
        return self.user1.display_name if self.user1 is not None else None

    @property
    def user2_name(self) -> str | None:
        return self.user2.display_name if self.user2 is not None else None

    def __repr__(self) -> str:
        return f"<Match {self.user1_id} <-> {self.user2_id} media={self.media_id}>"


class Swipe(Base):
    __tablename__ = "swipes"
    __table_args__ = (
        UniqueConstraint("user_id", "media_id", name="uq_swipe_user_media"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    media_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False
    )
    liked: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        comment="Refreshed whenever the user swipes the same item again",
    )

    def __repr__(self) -> str:
        return f"<Swipe {self.user_id} -> {self.media_id} liked={self.liked}>"
