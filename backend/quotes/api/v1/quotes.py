"""Quotes API endpoints."""

from typing import Optional, Tuple

import structlog
from fastapi import APIRouter, Depends, Query

from quotes.core.exceptions import UnavailableError
from quotes.dependencies import get_client_ip, get_pagination, get_quote_service, get_user_agent
from quotes.models.quote import Quote
from quotes.schemas import (
    ApiResponse,
    LikeStatusResponse,
    PaginationMeta,
    QuoteCreateRequest,
    QuoteResponse,
    QuoteUpdateRequest,
    ResetLikesResponse,
)
from quotes.services.quote_service import QuoteService, calculate_total_pages

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _with_like_status(service: QuoteService, quote: Quote, user_ip: str) -> QuoteResponse:
    """Build a response, marking whether the caller liked it.

    The like status is cosmetic, so a failed lookup reports ``False``.
    """
    try:
        is_liked = await service.is_liked(quote.id, user_ip)
    except UnavailableError as e:
        logger.warning("like_status_unavailable", quote_id=quote.id, error=e.message)
        is_liked = False

    response = QuoteResponse.model_validate(quote)
    response.is_liked = is_liked
    return response


# Static paths must be registered before /{quote_id}


@router.get("/random", response_model=ApiResponse)
async def get_random_quote(
    user_ip: str = Depends(get_client_ip),
    service: QuoteService = Depends(get_quote_service),
):
    """Get one random quote."""
    quote = await service.get_random()
    return ApiResponse(status="success", data=await _with_like_status(service, quote, user_ip))


@router.get("/top/weekly", response_model=ApiResponse)
async def get_top_weekly(
    user_ip: str = Depends(get_client_ip),
    service: QuoteService = Depends(get_quote_service),
):
    """Get the most liked quote created in the last 7 days."""
    quote = await service.get_top_weekly()
    return ApiResponse(status="success", data=await _with_like_status(service, quote, user_ip))


@router.get("/top/alltime", response_model=ApiResponse)
async def get_top_all_time(
    user_ip: str = Depends(get_client_ip),
    service: QuoteService = Depends(get_quote_service),
):
    """Get the most liked quote of all time."""
    quote = await service.get_top_all_time()
    return ApiResponse(status="success", data=await _with_like_status(service, quote, user_ip))


@router.delete("/likes/reset", response_model=ApiResponse)
async def reset_likes(service: QuoteService = Depends(get_quote_service)):
    """Zero all like counters and forget who liked what."""
    removed = await service.reset_likes()
    return ApiResponse(status="success", data=ResetLikesResponse(likes_removed=removed))


@router.get("", response_model=ApiResponse)
async def list_quotes(
    pagination: Tuple[int, int] = Depends(get_pagination),
    search: Optional[str] = Query(None, description="Match text or author, case-insensitive"),
    user_ip: str = Depends(get_client_ip),
    service: QuoteService = Depends(get_quote_service),
):
    """List quotes newest first, with pagination and search.

    Out-of-range pagination values are clamped rather than rejected.
    """
    page, page_size = pagination
    quotes, total = await service.get_all(page=page, page_size=page_size, search=search)

    try:
        liked = await service.liked_quote_ids(user_ip, (q.id for q in quotes))
    except UnavailableError as e:
        logger.warning("like_status_unavailable", error=e.message)
        liked = set()

    data = []
    for quote in quotes:
        item = QuoteResponse.model_validate(quote)
        item.is_liked = quote.id in liked
        data.append(item)

    return ApiResponse(
        status="success",
        data=data,
        meta=PaginationMeta(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=calculate_total_pages(total, page_size),
        ),
    )


@router.post("", response_model=ApiResponse, status_code=201)
async def create_quote(
    body: QuoteCreateRequest,
    service: QuoteService = Depends(get_quote_service),
):
    """Create a new quote."""
    quote = await service.create(Quote.new(text=body.text, author=body.author))
    return ApiResponse(status="success", data=QuoteResponse.model_validate(quote))


@router.get("/{quote_id}", response_model=ApiResponse)
async def get_quote(
    quote_id: str,
    user_ip: str = Depends(get_client_ip),
    service: QuoteService = Depends(get_quote_service),
):
    """Get quote details by ID."""
    quote = await service.get_by_id(quote_id)
    return ApiResponse(status="success", data=await _with_like_status(service, quote, user_ip))


@router.put("/{quote_id}", response_model=ApiResponse)
async def update_quote(
    quote_id: str,
    body: QuoteUpdateRequest,
    user_ip: str = Depends(get_client_ip),
    service: QuoteService = Depends(get_quote_service),
):
    """Update text and/or author. Empty fields keep their current value."""
    quote = await service.update(
        quote_id,
        text=body.text or None,
        author=body.author or None,
    )
    return ApiResponse(status="success", data=await _with_like_status(service, quote, user_ip))


@router.delete("/{quote_id}", response_model=ApiResponse)
async def delete_quote(
    quote_id: str,
    service: QuoteService = Depends(get_quote_service),
):
    """Delete a quote and its likes."""
    await service.delete(quote_id)
    return ApiResponse(status="success", data={"deleted": True})


@router.put("/{quote_id}/like", response_model=ApiResponse)
async def like_quote(
    quote_id: str,
    user_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent),
    service: QuoteService = Depends(get_quote_service),
):
    """Like a quote. Each caller address may like a quote once."""
    quote = await service.like(quote_id, user_ip=user_ip, user_agent=user_agent)

    response = QuoteResponse.model_validate(quote)
    response.is_liked = True
    return ApiResponse(status="success", data=response)


@router.get("/{quote_id}/is-liked", response_model=ApiResponse)
async def get_like_status(
    quote_id: str,
    user_ip: str = Depends(get_client_ip),
    service: QuoteService = Depends(get_quote_service),
):
    """Check whether the caller has liked the quote."""
    is_liked = await service.is_liked(quote_id, user_ip)
    return ApiResponse(status="success", data=LikeStatusResponse(is_liked=is_liked))
