"""Like model for per-caller like deduplication."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotes.models.base import Base, UTCDateTime, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from quotes.models.quote import Quote


class Like(UUIDPrimaryKeyMixin, Base):
    """Records that a caller address liked a quote. Unique per (quote, address)."""

    __tablename__ = "likes"

    quote_id: Mapped[str] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_ip: Mapped[str] = mapped_column(
        String(255), nullable=False,
        comment="Caller address used as the deduplication key"
    )
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("quote_id", "user_ip", name="uq_likes_quote_user_ip"),
    )

    quote: Mapped["Quote"] = relationship(back_populates="likes")

    def __repr__(self) -> str:
        return f"<Like(quote={self.quote_id}, user_ip={self.user_ip})>"
