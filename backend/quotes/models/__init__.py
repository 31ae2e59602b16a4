"""SQLAlchemy models for the quotes backend.

All models are imported here so metadata.create_all can discover them.
"""

from quotes.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from quotes.models.quote import Quote
from quotes.models.like import Like

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Quote",
    "Like",
]
