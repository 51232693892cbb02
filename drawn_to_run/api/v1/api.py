"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from drawn_to_run.api.v1.endpoints import (
    auth,
    users,
    events,
    registrations,
    comments,
    tags,
    health
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(
    registrations.event_router,
    prefix="/events/{event_id}/register",
    tags=["registrations"]
)
api_router.include_router(
    comments.router,
    prefix="/events/{event_id}/comments",
    tags=["comments"]
)
api_router.include_router(registrations.router, prefix="/registrations", tags=["registrations"])
api_router.include_router(tags.router, prefix="/tags", tags=["tags"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
