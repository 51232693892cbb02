"""
Tag schemas
"""

from typing import Dict, List, Optional

from drawn_to_run.schemas.base import BaseSchema


class TagResponse(BaseSchema):
    id: int
    name: str
    category: Optional[str] = None
    color: Optional[str] = None


class TagListResponse(BaseSchema):
    """All tags, plus the same tags grouped by category"""
    tags: List[TagResponse]
    categories: Dict[str, List[TagResponse]]
