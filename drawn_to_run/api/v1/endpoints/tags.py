"""
Tag catalogue endpoints
"""

from typing import Any, Dict, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from drawn_to_run.core.database import get_session
from drawn_to_run.models.tag import Tag
from drawn_to_run.schemas.response import ApiResponse
from drawn_to_run.schemas.tag import TagResponse, TagListResponse

router = APIRouter()

UNCATEGORIZED = "other"


@router.get("", response_model=ApiResponse[TagListResponse])
async def list_tags(
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    All tags ordered by category then name, also grouped by category
    """
    result = await db.execute(select(Tag).order_by(Tag.category, Tag.name))
    tags = [TagResponse.model_validate(tag) for tag in result.scalars().all()]

    categories: Dict[str, List[TagResponse]] = {}
    for tag in tags:
        categories.setdefault(tag.category or UNCATEGORIZED, []).append(tag)

    return ApiResponse(data=TagListResponse(tags=tags, categories=categories))
