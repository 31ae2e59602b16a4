"""Services module for business logic and data operations."""

from quotes.services.quote_service import QuoteService, calculate_total_pages

__all__ = [
    "QuoteService",
    "calculate_total_pages",
]
