"""
Pydantic schemas for request and response validation
"""

from drawn_to_run.schemas.user import (
    UserRegister,
    UserLogin,
    UserUpdate,
    UserResponse,
    UserSummary,
    AuthResponse,
    TokenPayload
)
from drawn_to_run.schemas.event import (
    EventCreate,
    EventUpdate,
    EventQuery,
    EventResponse,
    EventDetail,
    EventListResponse,
    TagAssignment
)
from drawn_to_run.schemas.registration import (
    EventRegistrationCreate,
    RegistrationUpdate,
    RegistrationQuery,
    RegistrationResponse,
    RegistrationDetail
)
from drawn_to_run.schemas.comment import (
    CommentCreate,
    CommentQuery,
    CommentResponse,
    ThreadedCommentResponse
)
from drawn_to_run.schemas.tag import TagResponse, TagListResponse
from drawn_to_run.schemas.response import (
    ApiResponse,
    ErrorResponse,
    PaginationMeta
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserUpdate",
    "UserResponse",
    "UserSummary",
    "AuthResponse",
    "TokenPayload",
    "EventCreate",
    "EventUpdate",
    "EventQuery",
    "EventResponse",
    "EventDetail",
    "EventListResponse",
    "TagAssignment",
    "EventRegistrationCreate",
    "RegistrationUpdate",
    "RegistrationQuery",
    "RegistrationResponse",
    "RegistrationDetail",
    "CommentCreate",
    "CommentQuery",
    "CommentResponse",
    "ThreadedCommentResponse",
    "TagResponse",
    "TagListResponse",
    "ApiResponse",
    "ErrorResponse",
    "PaginationMeta"
]
