"""Quotes backend: quote storage, like deduplication and rankings."""
