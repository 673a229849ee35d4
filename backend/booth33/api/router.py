"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from booth33.api.routes import admin, auth, bookings, credits, events, notifications, payments, rewards, sessions

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(bookings.router)
api_router.include_router(events.router)
api_router.include_router(credits.router)
api_router.include_router(payments.router)
api_router.include_router(sessions.router)
api_router.include_router(notifications.router)
api_router.include_router(rewards.router)
api_router.include_router(admin.router)
