"""
Comment Service
Reads event comment threads and creates comments under the nesting limit
"""

from typing import List, Optional, Tuple
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from drawn_to_run.config import settings
from drawn_to_run.core.exceptions import BadRequestError
from drawn_to_run.core.metrics import COMMENTS_CREATED
from drawn_to_run.models.comment import Comment
from drawn_to_run.models.user import User
from drawn_to_run.services.comment_thread import (
    CommentRow,
    ThreadedComment,
    build_comment_thread,
    paginate_thread,
)

logger = logging.getLogger(__name__)

class CommentService:
    """Comment thread reads and writes within one request's session"""

    def __init__(self, db: AsyncSession, max_depth: int = settings.COMMENT_MAX_DEPTH):
        self.db = db
        self.max_depth = max_depth

    async def fetch_rows(self, event_id: int) -> List[CommentRow]:
        stmt = (
            select(
                Comment.id,
                Comment.event_id,
                Comment.parent_id,
                Comment.content,
                Comment.created_at,
                Comment.updated_at,
                User.id.label("user_id"),
                User.name.label("user_name"),
                User.profile_image.label("user_profile_image"),
            )
            .join(User, Comment.user_id == User.id)
            .where(Comment.event_id == event_id)
        )
        result = await self.db.execute(stmt)
        return [CommentRow(**row._mapping) for row in result.all()]

    async def count_comments(self, event_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Comment.id)).where(Comment.event_id == event_id)
        )
        return result.scalar() or 0

    async def get_thread(self, event_id: int, page: int, limit: int) -> Tuple[List[ThreadedComment], int]:
        """
        One page of the event's thread, plus the event's total comment count.

        The total counts every stored comment, including replies deeper than
        the display limit, so it can exceed the number of displayable items.
        """
        rows = await self.fetch_rows(event_id)
        thread = build_comment_thread(rows, max_depth=self.max_depth)
        total = await self.count_comments(event_id)
        return paginate_thread(thread, page, limit), total

    async def comment_depth(self, comment_id: int) -> int:
        """
        Number of ancestors above comment_id, walking parent links to the root
        """
        depth = 0
        seen = {comment_id}
        parent_id = await self._parent_of(comment_id)

        while parent_id is not None:
            if parent_id in seen:
                logger.error(f"Comment {comment_id} has a cyclic parent chain at {parent_id}")
                break
            seen.add(parent_id)
            depth += 1
            parent_id = await self._parent_of(parent_id)

        return depth

    async def _parent_of(self, comment_id: int) -> Optional[int]:
        result = await self.db.execute(select(Comment.parent_id).where(Comment.id == comment_id))
        return result.scalar_one_or_none()

    async def create_comment(
        self,
        event_id: int,
        author: User,
        content: str,
        parent_id: Optional[int] = None
    ) -> Comment:
        """
        Insert a comment or reply. The parent checks and the insert share the
        session's transaction, and parent links are never rewritten, so a
        parent's depth cannot change between the check and the commit.
        """
        if parent_id is not None:
            result = await self.db.execute(
                select(Comment.id, Comment.event_id).where(Comment.id == parent_id)
            )
            parent = result.one_or_none()

            if parent is None:
                raise BadRequestError("Parent comment not found")

            if parent.event_id != event_id:
                raise BadRequestError("Parent comment does not belong to this event")

            # Replies to a parent at this depth would land below the display limit
            if await self.comment_depth(parent_id) >= self.max_depth - 1:
                raise BadRequestError("Maximum comment nesting depth reached")

        comment = Comment(
            event_id=event_id,
            user_id=author.id,
            parent_id=parent_id,
            content=content,
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)

        COMMENTS_CREATED.labels(kind="reply" if parent_id else "root").inc()
        logger.info(f"User {author.id} commented on event {event_id} (comment {comment.id})")
        return comment
