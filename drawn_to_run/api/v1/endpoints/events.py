"""
Event management endpoints
"""

from typing import Any, Annotated, Dict, List, Optional
import json
import logging
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, cast, String, delete, insert
from sqlalchemy.orm import selectinload

from drawn_to_run.core.database import get_session
from drawn_to_run.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from drawn_to_run.core.security import require_authenticated, require_role
from drawn_to_run.models.user import User, UserRole
from drawn_to_run.models.event import Event, EventStatus, event_tags
from drawn_to_run.models.registration import Registration, RegistrationStatus
from drawn_to_run.models.comment import Comment
from drawn_to_run.models.tag import Tag
from drawn_to_run.schemas.response import ApiResponse, MessageResponse, PaginationMeta
from drawn_to_run.schemas.event import (
    EventCreate,
    EventUpdate,
    EventQuery,
    EventResponse,
    EventDetail,
    EventListResponse,
    EventDeleteResponse,
    DeletedEvent,
    OrganizerSummary,
    TagAssignment,
)

router = APIRouter()
logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "date": Event.event_date,
    "event_date": Event.event_date,
    "title": Event.title,
    "location": Event.location,
    "created_at": Event.created_at,
}

URL_FIELDS = ("banner_image",)


def _registered_count_subquery():
    return (
        select(func.count(Registration.id))
        .where(
            Registration.event_id == Event.id,
            Registration.status == RegistrationStatus.REGISTERED
        )
        .correlate(Event)
        .scalar_subquery()
    )


def _serialize_event(
    event: Event,
    organizer: Optional[User],
    registration_count: int,
    comment_count: Optional[int] = None,
    include_organizer_image: bool = False
) -> Dict[str, Any]:
    data = event.dict()
    data["organizer"] = OrganizerSummary(
        name=organizer.name,
        email=organizer.email,
        profile_image=organizer.profile_image if include_organizer_image else None,
    ) if organizer else None
    data["tags"] = list(event.tags)
    data["registration_count"] = registration_count or 0
    if comment_count is not None:
        data["comment_count"] = comment_count
    return data


def _column_values(payload: Dict[str, Any]) -> Dict[str, Any]:
    for field in URL_FIELDS:
        if payload.get(field) is not None:
            payload[field] = str(payload[field])
    return payload


async def _load_event_detail(db: AsyncSession, event_id: int) -> EventDetail:
    comment_count = (
        select(func.count(Comment.id))
        .where(Comment.event_id == Event.id)
        .correlate(Event)
        .scalar_subquery()
    )
    stmt = (
        select(Event, User, _registered_count_subquery(), comment_count)
        .options(selectinload(Event.tags))
        .outerjoin(User, Event.created_by == User.id)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    row = (await db.execute(stmt)).one_or_none()
    if row is None:
        raise NotFoundError("Event")

    event, organizer, registration_count, comments = row
    return EventDetail.model_validate(
        _serialize_event(event, organizer, registration_count, comments, include_organizer_image=True)
    )


async def _get_event_or_404(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError("Event")
    return event


def _ensure_can_manage(user: User, event: Event, message: str) -> None:
    if not user.role.can_manage_events:
        raise AuthorizationError("Insufficient permissions")
    if not user.role.is_admin and event.created_by != user.id:
        raise AuthorizationError(message)


@router.get("", response_model=ApiResponse[EventListResponse])
async def get_events(
    params: Annotated[EventQuery, Query()],
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    List active events with filtering, sorting and pagination
    """
    filters = [Event.status == EventStatus.ACTIVE]

    if params.search:
        pattern = f"%{params.search}%"
        filters.append(
            or_(
                Event.title.ilike(pattern),
                Event.description.ilike(pattern),
                Event.location.ilike(pattern)
            )
        )
    if params.location:
        filters.append(Event.location.ilike(f"%{params.location}%"))
    if params.date_from:
        filters.append(Event.event_date >= params.date_from)
    if params.date_to:
        filters.append(Event.event_date <= params.date_to)
    if params.distance:
        # distance_options is a JSON array of strings; match the quoted element
        filters.append(cast(Event.distance_options, String).like(f"%{json.dumps(params.distance)}%"))

    tag_ids = params.tag_ids
    if tag_ids:
        tagged = select(event_tags.c.event_id).where(event_tags.c.tag_id.in_(tag_ids))
        filters.append(Event.id.in_(tagged))

    condition = and_(*filters)

    total_result = await db.execute(select(func.count(Event.id)).where(condition))
    total = total_result.scalar() or 0

    sort_column = SORT_COLUMNS[params.sort]
    ordering = sort_column.desc() if params.order == "desc" else sort_column.asc()

    stmt = (
        select(Event, User, _registered_count_subquery())
        .options(selectinload(Event.tags))
        .outerjoin(User, Event.created_by == User.id)
        .where(condition)
        .order_by(ordering, Event.id)
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
    )
    rows = (await db.execute(stmt)).all()

    events = [
        EventResponse.model_validate(_serialize_event(event, organizer, registration_count))
        for event, organizer, registration_count in rows
    ]

    return ApiResponse(data=EventListResponse(
        events=events,
        meta=PaginationMeta.build(params.page, params.limit, total),
    ))


@router.post("", response_model=ApiResponse[EventResponse], status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    current_user: User = Depends(require_role(UserRole.ORGANIZER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Create an event owned by the current organizer
    """
    event = Event(
        **_column_values(event_data.model_dump()),
        created_by=current_user.id,
        status=EventStatus.ACTIVE,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event, attribute_names=["tags"])

    logger.info(f"User {current_user.id} created event {event.id}")
    return ApiResponse(data=EventResponse.model_validate(_serialize_event(event, current_user, 0)))


@router.get("/{event_id}", response_model=ApiResponse[EventDetail])
async def get_event(
    event_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Event details with organizer, tags and counts
    """
    return ApiResponse(data=await _load_event_detail(db, event_id))


@router.put("/{event_id}", response_model=ApiResponse[EventDetail])
async def update_event(
    event_update: EventUpdate,
    event_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Update an event; its creator or an admin only
    """
    event = await _get_event_or_404(db, event_id)
    _ensure_can_manage(current_user, event, "You can only update events you created")

    if event.status == EventStatus.COMPLETED and not current_user.role.is_admin:
        raise AuthorizationError("Cannot update completed events")

    update_data = _column_values(event_update.model_dump(exclude_unset=True, exclude_none=True))
    if not update_data:
        raise BadRequestError("No valid fields to update")

    if "status" in update_data:
        update_data["status"] = EventStatus(update_data["status"])

    for field, value in update_data.items():
        setattr(event, field, value)

    await db.commit()
    logger.info(f"User {current_user.id} updated event {event_id}: {sorted(update_data)}")

    return ApiResponse(data=await _load_event_detail(db, event_id))


@router.delete("/{event_id}", response_model=ApiResponse[EventDeleteResponse])
async def delete_event(
    event_id: int = Path(..., gt=0),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Delete an event that nobody has registered for (admin only)
    """
    event = await _get_event_or_404(db, event_id)

    count_result = await db.execute(
        select(func.count(Registration.id)).where(Registration.event_id == event_id)
    )
    if count_result.scalar():
        raise ConflictError(
            "Cannot delete event with existing registrations. Consider cancelling the event instead."
        )

    deleted = DeletedEvent(id=event.id, title=event.title)
    await db.execute(delete(event_tags).where(event_tags.c.event_id == event_id))
    await db.execute(delete(Comment).where(Comment.event_id == event_id))
    await db.execute(delete(Event).where(Event.id == event_id))
    await db.commit()

    logger.info(f"Admin {current_user.id} deleted event {event_id}")
    return ApiResponse(data=EventDeleteResponse(
        message="Event deleted successfully",
        deleted_event=deleted,
    ))


async def _authorize_tag_change(db: AsyncSession, user: User, event_id: int) -> Event:
    event = await _get_event_or_404(db, event_id)
    _ensure_can_manage(user, event, "You can only manage tags for your own events")
    return event


@router.post("/{event_id}/tags", response_model=ApiResponse[MessageResponse])
async def assign_tags(
    assignment: TagAssignment,
    event_id: int = Path(..., gt=0),
    current_user: User = Depends(require_role(UserRole.ORGANIZER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Attach tags to an event; re-attaching an existing tag is a no-op
    """
    await _authorize_tag_change(db, current_user, event_id)

    tag_ids: List[int] = list(dict.fromkeys(assignment.tagIds))
    if tag_ids:
        result = await db.execute(select(Tag.id).where(Tag.id.in_(tag_ids)))
        existing = set(result.scalars().all())
        invalid = [tag_id for tag_id in tag_ids if tag_id not in existing]
        if invalid:
            raise BadRequestError(f"Invalid tag IDs: {', '.join(str(i) for i in invalid)}")

        await db.execute(
            delete(event_tags).where(
                event_tags.c.event_id == event_id,
                event_tags.c.tag_id.in_(tag_ids)
            )
        )
        await db.execute(
            insert(event_tags),
            [{"event_id": event_id, "tag_id": tag_id} for tag_id in tag_ids]
        )
        await db.commit()

    return ApiResponse(data=MessageResponse(message="Tags assigned successfully"))


@router.delete("/{event_id}/tags", response_model=ApiResponse[MessageResponse])
async def remove_tags(
    assignment: TagAssignment,
    event_id: int = Path(..., gt=0),
    current_user: User = Depends(require_role(UserRole.ORGANIZER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Detach tags from an event
    """
    await _authorize_tag_change(db, current_user, event_id)

    if assignment.tagIds:
        await db.execute(
            delete(event_tags).where(
                event_tags.c.event_id == event_id,
                event_tags.c.tag_id.in_(assignment.tagIds)
            )
        )
        await db.commit()

    return ApiResponse(data=MessageResponse(message="Tags removed successfully"))
