"""
Movie Matcher — Partner request model.

A request is created by the requester and only ever transitioned by the
recipient.  Rows are never deleted.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moviematch.database import Base, utcnow

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
STATUS_DISSOLVED = "dissolved"

ACTIVE_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED)

_ACTIVE_WHERE = text("status IN ('pending', 'accepted')")


def make_pair_key(user_a_id: uuid.UUID, user_b_id: uuid.UUID) -> str:
    """Order-independent key for a pair of users."""
    low, high = sorted((str(user_a_id), str(user_b_id)))
    return f"{low}:{high}"


class PartnerRequest(Base):
    __tablename__ = "partner_requests"
    __table_args__ = (
        Index(
            "uq_partner_request_active_pair",
            "pair_key",
            unique=True,
            postgresql_where=_ACTIVE_WHERE,
            sqlite_where=_ACTIVE_WHERE,
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String,
        default=STATUS_PENDING,
        nullable=False,
        comment="pending / accepted / rejected / dissolved",
    )
    pair_key: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # ── Relationships ──────────────────────────────────────────────
    requester: Mapped["User"] = relationship(
        "User", foreign_keys=[requester_id], lazy="selectin"
    )
    recipient: Mapped["User"] = relationship(
        "User", foreign_keys=[recipient_id], lazy="selectin"
    )

    @property
    def requester_email(self) -> str | None:
        return self.requester.email if self.requester is not None else None

    @property
    def recipient_email(self) -> str | None:
        return self.recipient.email if self.recipient is not None else None

    def __repr__(self) -> str:
        return (
            f"<PartnerRequest {self.requester_id} -> {self.recipient_id} "
            f"status={self.status!r}>"
        )
