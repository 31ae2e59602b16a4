"""Database seeding script for development.

Populates an empty database with a handful of quotes.
Run with: python -m quotes.db.seed
"""

import asyncio

from sqlalchemy import func, select

from quotes.db.session import async_session_factory, create_tables, engine
from quotes.models import Quote
from quotes.services.quote_service import QuoteService

SEED_QUOTES = [
    ("The happiness of your life depends upon the quality of your thoughts.", "Marcus Aurelius"),
    ("We suffer more often in imagination than in reality.", "Seneca"),
    ("No man ever steps in the same river twice.", "Heraclitus"),
    ("It is not that we have a short time to live, but that we waste a lot of it.", "Seneca"),
    ("First say to yourself what you would be; and then do what you have to do.", "Epictetus"),
    ("The unexamined life is not worth living.", "Socrates"),
    ("Waste no more time arguing about what a good man should be. Be one.", "Marcus Aurelius"),
    ("Simplicity is the ultimate sophistication.", "Leonardo da Vinci"),
]


async def seed_quotes() -> int:
    """Insert the seed quotes if the quotes table is empty.

    Returns:
        Number of quotes inserted
    """
    await create_tables(engine)

    async with async_session_factory() as session:
        existing = (await session.execute(select(func.count(Quote.id)))).scalar() or 0
    if existing:
        print(f"  Skipping: {existing} quotes already present")
        return 0

    service = QuoteService(async_session_factory)
    for text, author in SEED_QUOTES:
        await service.create(Quote.new(text=text, author=author))
        print(f"  + {author}: {text[:50]}")

    return len(SEED_QUOTES)


async def main():
    print("Seeding quotes...")
    inserted = await seed_quotes()
    print(f"Done, {inserted} quotes inserted.")
    await engine.dispose()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
