"""Quote model."""

from typing import TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotes.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, new_id, utcnow

if TYPE_CHECKING:
    from quotes.models.like import Like


class Quote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A quotation with a denormalized like counter.

    ``likes_count`` always equals the number of ``Like`` rows for the quote
    once the transaction that touched them has committed.
    """

    __tablename__ = "quotes"

    text: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    likes_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )

    __table_args__ = (
        CheckConstraint("likes_count >= 0", name="ck_quotes_likes_count_non_negative"),
        Index("idx_quotes_likes_created", "likes_count", "created_at"),
    )

    likes: Mapped[List["Like"]] = relationship(
        back_populates="quote",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @classmethod
    def new(cls, text: str, author: str) -> "Quote":
        """Build a fully-formed quote ready for ``QuoteService.create``."""
        now = utcnow()
        return cls(
            id=new_id(),
            text=text,
            author=author,
            likes_count=0,
            created_at=now,
            updated_at=now,
        )

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, author='{self.author}', likes={self.likes_count})>"
