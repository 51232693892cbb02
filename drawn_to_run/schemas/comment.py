"""
Comment schemas
"""

from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime

from drawn_to_run.config import settings
from drawn_to_run.schemas.base import BaseSchema, IDSchema, TimestampSchema
from drawn_to_run.schemas.user import UserSummary


class CommentCreate(BaseSchema):
    """New comment or reply"""
    content: str
    parent_id: Optional[int] = Field(None, gt=0)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v:
            raise ValueError('Comment content is required')
        return v


class CommentQuery(BaseSchema):
    """Pagination over the flattened thread; oversized limits are clamped"""
    page: int = Field(1, ge=1)
    limit: int = Field(settings.COMMENTS_DEFAULT_LIMIT, ge=1)

    @field_validator('limit')
    @classmethod
    def clamp_limit(cls, v):
        return min(v, settings.MAX_PAGE_LIMIT)


class CommentResponse(IDSchema, TimestampSchema):
    event_id: int
    parent_id: Optional[int] = None
    content: str
    user: UserSummary


class ThreadedCommentResponse(CommentResponse):
    depth: int
