"""Pydantic schemas for the quotes API.

All request/response models are defined here for easy import.
"""

from quotes.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, PaginationMeta
from quotes.schemas.health import HealthCheckResponse
from quotes.schemas.quote import (
    LikeStatusResponse,
    QuoteCreateRequest,
    QuoteResponse,
    QuoteUpdateRequest,
    ResetLikesResponse,
)

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Health
    "HealthCheckResponse",
    # Quote
    "LikeStatusResponse",
    "QuoteCreateRequest",
    "QuoteResponse",
    "QuoteUpdateRequest",
    "ResetLikesResponse",
]
