"""
Database models
"""

from drawn_to_run.models.user import User, UserRole
from drawn_to_run.models.event import Event, EventStatus, event_tags
from drawn_to_run.models.registration import Registration, RegistrationStatus
from drawn_to_run.models.comment import Comment
from drawn_to_run.models.tag import Tag

__all__ = [
    "User",
    "UserRole",
    "Event",
    "EventStatus",
    "event_tags",
    "Registration",
    "RegistrationStatus",
    "Comment",
    "Tag"
]
