"""Quote Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class QuoteCreateRequest(BaseModel):
    """Request to create a new quote."""
    text: str = Field(min_length=1)
    author: str = Field(min_length=1, max_length=255)


class QuoteUpdateRequest(BaseModel):
    """Request to update a quote. Missing or empty fields are left unchanged."""
    text: Optional[str] = None
    author: Optional[str] = Field(None, max_length=255)


class QuoteResponse(BaseModel):
    """Single quote response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    text: str
    author: str
    likes_count: int
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime


class LikeStatusResponse(BaseModel):
    is_liked: bool


class ResetLikesResponse(BaseModel):
    likes_removed: int
