"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from railmatch.api.v1 import deals, health, inbox, matches, offers
from railmatch.core.config import get_config


def get_api_router() -> APIRouter:
    api_router = APIRouter(prefix=get_config().API_PREFIX)
    api_router.include_router(health.router)
    api_router.include_router(matches.router)
    api_router.include_router(deals.router)
    api_router.include_router(inbox.router)
    api_router.include_router(offers.router)
    return api_router
