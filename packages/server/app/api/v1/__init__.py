"""
API v1 Router

One router per domain; auth routes are mounted separately at /auth.
"""

from fastapi import APIRouter
from . import messages, notifications, pricing, users

router = APIRouter()

router.include_router(messages.router, prefix="/messages")
router.include_router(notifications.router, prefix="/notifications")
router.include_router(pricing.router, prefix="/pricing")
router.include_router(users.router, prefix="/users")


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/messages",
            "/notifications",
            "/pricing",
            "/users",
        ],
    }
