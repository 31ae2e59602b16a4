"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from quotes.api.v1 import health, quotes

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
