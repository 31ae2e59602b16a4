"""Quote store: CRUD, like deduplication and rankings.

Every public method opens its own session and transaction from the session
factory, so the service can be shared by concurrent request handlers. Domain
failures raise ``NotFoundError`` / ``AlreadyLikedError``; any database failure
is rolled back and surfaced as ``UnavailableError``.
"""

import math
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Iterable, List, Optional, Set, Tuple

import structlog
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quotes.core.exceptions import AlreadyLikedError, NotFoundError, QuotesException, UnavailableError
from quotes.models.base import new_id, utcnow
from quotes.models.like import Like
from quotes.models.quote import Quote

logger = structlog.get_logger(__name__)

TOP_WEEKLY_WINDOW = timedelta(days=7)

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def calculate_total_pages(total: int, page_size: int) -> int:
    """Number of pages needed to show ``total`` items, ``page_size`` per page."""
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


class QuoteService:
    """Sole owner of Quote and Like state.

    Holds no mutable state besides the session factory; all durable state
    lives in the database.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize quote service.

        Args:
            session_factory: Factory producing async sessions bound to the store
        """
        self.session_factory = session_factory
        self.logger = logger.bind(service="quote_service")

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Yield a session inside a transaction scoped to one operation.

        Commits when the block exits cleanly, rolls back on any exception and
        always returns the connection to the pool.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
        except QuotesException:
            raise
        except (SQLAlchemyError, OSError) as e:
            self.logger.error("database_error", operation=operation, error=str(e))
            raise UnavailableError(operation, str(e)) from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_random(self) -> Quote:
        """Return one quote chosen uniformly at random.

        Raises:
            NotFoundError: If there are no quotes
        """
        # ORDER BY random() scans the whole table; fine for modest collections.
        stmt = select(Quote).order_by(func.random()).limit(1)
        async with self._transaction("get_random") as session:
            result = await session.execute(stmt)
            quote = result.scalar_one_or_none()

        if quote is None:
            raise NotFoundError("Quote", "random")
        return quote

    async def get_all(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
    ) -> Tuple[List[Quote], int]:
        """Get a page of quotes, newest first.

        The caller is responsible for clamping ``page`` and ``page_size``.

        Args:
            page: Page number (1-indexed)
            page_size: Results per page
            search: Case-insensitive substring matched against text or author

        Returns:
            Tuple of (quotes list, total count matching the filter)
        """
        query = select(Quote)
        count_query = select(func.count(Quote.id))

        term = search if search and search.strip() else ""
        if term:
            condition = or_(
                Quote.text.icontains(term, autoescape=True),
                Quote.author.icontains(term, autoescape=True),
            )
            query = query.where(condition)
            count_query = count_query.where(condition)

        offset = (page - 1) * page_size
        query = (
            query.order_by(Quote.created_at.desc(), Quote.id.desc())
            .offset(offset)
            .limit(page_size)
        )

        async with self._transaction("get_all") as session:
            total_result = await session.execute(count_query)
            total = total_result.scalar() or 0

            result = await session.execute(query)
            quotes = list(result.scalars().all())

        self.logger.debug(
            "quotes_fetched",
            count=len(quotes),
            total=total,
            page=page,
            search=term or None,
        )
        return quotes, total

    async def get_by_id(self, quote_id: str) -> Quote:
        """Get a single quote.

        Raises:
            NotFoundError: If no quote has this id
        """
        async with self._transaction("get_by_id") as session:
            quote = await session.get(Quote, quote_id)

        if quote is None:
            raise NotFoundError("Quote", quote_id)
        return quote

    async def is_liked(self, quote_id: str, user_ip: str) -> bool:
        """Whether ``user_ip`` has liked the quote. No locking."""
        stmt = select(Like.id).where(
            Like.quote_id == quote_id,
            Like.user_ip == user_ip,
        ).limit(1)
        async with self._transaction("is_liked") as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def liked_quote_ids(self, user_ip: str, quote_ids: Iterable[str]) -> Set[str]:
        """Subset of ``quote_ids`` that ``user_ip`` has liked, in one query."""
        ids = list(quote_ids)
        if not ids:
            return set()

        stmt = select(Like.quote_id).where(
            Like.user_ip == user_ip,
            Like.quote_id.in_(ids),
        )
        async with self._transaction("liked_quote_ids") as session:
            result = await session.execute(stmt)
            return set(result.scalars().all())

    async def get_top_weekly(self) -> Quote:
        """Most-liked quote created within the last 7 days, newest wins ties.

        Raises:
            NotFoundError: If no quote was created in the window
        """
        cutoff = utcnow() - TOP_WEEKLY_WINDOW
        quote = await self._top_quote("get_top_weekly", Quote.created_at >= cutoff)
        if quote is None:
            raise NotFoundError("Quote", "top weekly")
        return quote

    async def get_top_all_time(self) -> Quote:
        """Most-liked quote overall, newest wins ties.

        Raises:
            NotFoundError: If there are no quotes
        """
        quote = await self._top_quote("get_top_all_time")
        if quote is None:
            raise NotFoundError("Quote", "top all time")
        return quote

    async def _top_quote(self, operation: str, *conditions) -> Optional[Quote]:
        stmt = (
            select(Quote)
            .where(*conditions)
            .order_by(Quote.likes_count.desc(), Quote.created_at.desc())
            .limit(1)
        )
        async with self._transaction(operation) as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, quote: Quote) -> Quote:
        """Persist a new quote. Duplicate text/author pairs are allowed."""
        quote.likes_count = 0
        async with self._transaction("create") as session:
            session.add(quote)

        self.logger.info("quote_created", quote_id=quote.id, author=quote.author)
        return quote

    async def update(
        self,
        quote_id: str,
        text: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Quote:
        """Apply a partial edit and refresh ``updated_at``.

        ``likes_count`` is never touched here.

        Raises:
            NotFoundError: If no quote has this id
        """
        values = {"updated_at": utcnow()}
        if text is not None:
            values["text"] = text
        if author is not None:
            values["author"] = author

        stmt = (
            update(Quote)
            .where(Quote.id == quote_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction("update") as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("Quote", quote_id)
            quote = await session.get(Quote, quote_id, populate_existing=True)

        self.logger.info("quote_updated", quote_id=quote_id, fields=sorted(values))
        return quote

    async def delete(self, quote_id: str) -> None:
        """Delete a quote together with its likes.

        Raises:
            NotFoundError: If no quote has this id
        """
        async with self._transaction("delete") as session:
            likes_result = await session.execute(
                delete(Like).where(Like.quote_id == quote_id)
            )
            result = await session.execute(
                delete(Quote).where(Quote.id == quote_id)
            )
            if result.rowcount == 0:
                raise NotFoundError("Quote", quote_id)

        self.logger.info(
            "quote_deleted",
            quote_id=quote_id,
            likes_removed=likes_result.rowcount,
        )

    async def like(
        self,
        quote_id: str,
        user_ip: str,
        user_agent: Optional[str] = None,
    ) -> Quote:
        """Record a like from ``user_ip`` and bump the quote's counter.

        Protocol, all in one transaction:
        1. Lock the quote row. Concurrent likes of the same quote queue here,
           and a missing quote fails before any duplicate check.
        2. Locking read of an existing like for (quote, address).
        3. Insert the like with ON CONFLICT DO NOTHING. The unique constraint
           is the backstop; an ignored insert means another caller won.
        4. Increment ``likes_count`` only after the like row is in.

        Raises:
            NotFoundError: If no quote has this id
            AlreadyLikedError: If this address already liked the quote
        """
        now = utcnow()
        async with self._transaction("like") as session:
            locked = await session.execute(
                select(Quote.id).where(Quote.id == quote_id).with_for_update()
            )
            if locked.scalar_one_or_none() is None:
                raise NotFoundError("Quote", quote_id)

            if await self._find_like(session, quote_id, user_ip) is not None:
                self.logger.info("like_rejected_duplicate", quote_id=quote_id, user_ip=user_ip)
                raise AlreadyLikedError(quote_id)

            insert_stmt = self._insert_like_ignoring_conflict(
                session,
                id=new_id(),
                quote_id=quote_id,
                user_ip=user_ip,
                user_agent=user_agent,
                created_at=now,
            )
            inserted = await session.execute(insert_stmt)
            if inserted.scalar_one_or_none() is None:
                self.logger.warning("like_insert_conflict", quote_id=quote_id, user_ip=user_ip)
                raise AlreadyLikedError(quote_id)

            await session.execute(
                update(Quote)
                .where(Quote.id == quote_id)
                .values(likes_count=Quote.likes_count + 1, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            quote = await session.get(Quote, quote_id, populate_existing=True)

        self.logger.info("quote_liked", quote_id=quote_id, likes_count=quote.likes_count)
        return quote

    @staticmethod
    async def _find_like(session: AsyncSession, quote_id: str, user_ip: str) -> Optional[str]:
        """Locking read of the like id for (quote, address), if any."""
        result = await session.execute(
            select(Like.id)
            .where(Like.quote_id == quote_id, Like.user_ip == user_ip)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _insert_like_ignoring_conflict(session: AsyncSession, **values):
        dialect = session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise UnavailableError("like", f"unsupported database dialect '{dialect}'")

        return (
            insert(Like)
            .values(**values)
            .on_conflict_do_nothing(index_elements=[Like.quote_id, Like.user_ip])
            .returning(Like.id)
        )

    async def reset_likes(self) -> int:
        """Zero every counter and delete every like, atomically.

        Counters are reset first so the quote row locks held by in-flight
        likes are waited on before the likes table is cleared.

        Returns:
            Number of like rows removed
        """
        async with self._transaction("reset_likes") as session:
            await session.execute(
                update(Quote)
                .values(likes_count=0, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(delete(Like))
            removed = result.rowcount

        self.logger.info("likes_reset", likes_removed=removed)
        return removed
