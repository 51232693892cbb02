"""
API endpoints module
"""

from . import auth, users, events, registrations, comments, tags, health

__all__ = [
    "auth",
    "users",
    "events",
    "registrations",
    "comments",
    "tags",
    "health"
]
