"""
Event comment thread endpoints
"""

from typing import Any, Annotated, List
import logging
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from drawn_to_run.core.database import get_session
from drawn_to_run.core.exceptions import NotFoundError
from drawn_to_run.core.security import require_authenticated
from drawn_to_run.models.user import User
from drawn_to_run.models.event import Event
from drawn_to_run.schemas.response import ApiResponse, PaginationMeta
from drawn_to_run.schemas.user import UserSummary
from drawn_to_run.schemas.comment import (
    CommentCreate,
    CommentQuery,
    CommentResponse,
    ThreadedCommentResponse,
)
from drawn_to_run.services.comment_service import CommentService

# Mounted under /events/{event_id}/comments
router = APIRouter()
logger = logging.getLogger(__name__)


async def _ensure_event_exists(db: AsyncSession, event_id: int) -> None:
    result = await db.execute(select(Event.id).where(Event.id == event_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Event")


@router.get("", response_model=ApiResponse[List[ThreadedCommentResponse]])
async def get_event_comments(
    params: Annotated[CommentQuery, Query()],
    event_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Depth-first page of the event's comment thread.

    Roots and replies are ordered oldest first; replies below the third
    level are not shown. meta.total counts every comment on the event.
    """
    await _ensure_event_exists(db, event_id)

    service = CommentService(db)
    page_items, total = await service.get_thread(event_id, params.page, params.limit)

    return ApiResponse(
        data=[ThreadedCommentResponse.model_validate(item.to_dict()) for item in page_items],
        meta=PaginationMeta.build(params.page, params.limit, total),
    )


@router.post("", response_model=ApiResponse[CommentResponse], status_code=status.HTTP_201_CREATED)
async def create_event_comment(
    comment_data: CommentCreate,
    event_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Post a comment, or a reply when parent_id is given
    """
    await _ensure_event_exists(db, event_id)

    service = CommentService(db)
    comment = await service.create_comment(
        event_id,
        current_user,
        comment_data.content,
        parent_id=comment_data.parent_id,
    )

    return ApiResponse(data=CommentResponse(
        id=comment.id,
        event_id=comment.event_id,
        parent_id=comment.parent_id,
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        user=UserSummary.model_validate(current_user),
    ))
