"""FastAPI dependency injection providers."""

from typing import Optional, Tuple

from fastapi import Query, Request

from quotes.db.session import async_session_factory
from quotes.db.utils import get_db
from quotes.services.quote_service import QuoteService

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_quote_service = QuoteService(async_session_factory)

__all__ = [
    "get_db",
    "get_quote_service",
    "get_client_ip",
    "get_user_agent",
    "get_pagination",
    "clamp_pagination",
]


def get_quote_service() -> QuoteService:
    """Return the process-wide quote store.

    The store is stateless apart from its session factory, so one instance
    serves every request.
    """
    return _quote_service


def get_client_ip(request: Request) -> str:
    """Deduplication key for likes.

    Uses the first X-Forwarded-For entry when behind a proxy, otherwise the
    socket peer. The value is not authenticated.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client:
        return request.client.host
    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")


def clamp_pagination(page: int, page_size: int) -> Tuple[int, int]:
    """Force page >= 1 and 1 <= page_size <= 100 (falls back to the default size)."""
    if page < 1:
        page = 1
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


def get_pagination(
    page: int = Query(1, description="Page number (1-indexed)"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, description="Items per page (1-100)"),
) -> Tuple[int, int]:
    return clamp_pagination(page, page_size)
