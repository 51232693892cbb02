"""
Threaded comment ordering.

Comments are fetched for an event as one flat row set and arranged here into
display order: roots first, each followed by its replies, siblings ordered by
(created_at, id). This is the order you get by sorting on the root-to-node path
of (created_at, id) pairs. Replies below ``max_depth`` are not shown.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from drawn_to_run.models.base import ensure_utc


@dataclass(frozen=True)
class CommentRow:
    """A comment joined with its author's summary fields"""
    id: int
    event_id: int
    parent_id: Optional[int]
    content: str
    created_at: datetime
    updated_at: datetime
    user_id: int
    user_name: str
    user_profile_image: Optional[str] = None


@dataclass(frozen=True)
class ThreadedComment:
    row: CommentRow
    depth: int

    def to_dict(self) -> dict:
        row = self.row
        return {
            "id": row.id,
            "event_id": row.event_id,
            "parent_id": row.parent_id,
            "content": row.content,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
            "depth": self.depth,
            "user": {
                "id": row.user_id,
                "name": row.user_name,
                "profile_image": row.user_profile_image,
            },
        }


def _sibling_key(row: CommentRow) -> Tuple[datetime, int]:
    return ensure_utc(row.created_at), row.id


def build_comment_thread(rows: Iterable[CommentRow], max_depth: int = 3) -> List[ThreadedComment]:
    """
    Flatten comments into depth-first display order.

    Uses an explicit stack so deep or corrupted parent chains cannot exhaust
    the interpreter's recursion limit; each comment is emitted at most once,
    so a parent-link cycle cannot loop. Rows whose parent is absent from
    ``rows`` are unreachable and therefore omitted.
    """
    roots: List[CommentRow] = []
    children: Dict[int, List[CommentRow]] = defaultdict(list)

    for row in rows:
        if row.parent_id is None:
            roots.append(row)
        else:
            children[row.parent_id].append(row)

    # Pushed in reverse so the earliest sibling is popped first
    stack: List[Tuple[CommentRow, int]] = [
        (root, 0) for root in sorted(roots, key=_sibling_key, reverse=True)
    ]
    visited = set()
    ordered: List[ThreadedComment] = []

    while stack:
        row, depth = stack.pop()
        if row.id in visited:
            continue
        visited.add(row.id)
        ordered.append(ThreadedComment(row=row, depth=depth))

        if depth < max_depth:
            replies = sorted(children.get(row.id, ()), key=_sibling_key, reverse=True)
            stack.extend((reply, depth + 1) for reply in replies)

    return ordered


def paginate_thread(thread: List[ThreadedComment], page: int, limit: int) -> List[ThreadedComment]:
    """Slice the flattened thread; a page boundary may fall inside a thread"""
    offset = (page - 1) * limit
    return thread[offset:offset + limit]
