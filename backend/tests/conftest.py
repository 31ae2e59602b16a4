"""Pytest configuration and shared fixtures."""

from datetime import timedelta
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quotes.db.session import build_engine, build_session_factory, create_tables
from quotes.models import Quote
from quotes.models.base import utcnow
from quotes.services.quote_service import QuoteService


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """File-backed SQLite so concurrent sessions get their own connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'quotes.db'}")
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)


@pytest.fixture
def quote_service(session_factory) -> QuoteService:
    return QuoteService(session_factory)


@pytest.fixture
def make_quote(quote_service: QuoteService):
    """Create and persist a quote, optionally backdated."""

    async def _make(
        text: str = "Know thyself.",
        author: str = "Socrates",
        age: Optional[timedelta] = None,
    ) -> Quote:
        quote = Quote.new(text=text, author=author)
        if age is not None:
            quote.created_at = utcnow() - age
            quote.updated_at = quote.created_at
        return await quote_service.create(quote)

    return _make
