"""
Event registration endpoints
"""

from typing import Any, Optional, Tuple
from datetime import datetime, timezone
import logging
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from sqlalchemy.orm import aliased

from drawn_to_run.core.database import get_session
from drawn_to_run.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from drawn_to_run.core.security import require_authenticated
from drawn_to_run.models.base import ensure_utc, utcnow
from drawn_to_run.models.user import User, UserRole
from drawn_to_run.models.event import Event, EventStatus
from drawn_to_run.models.registration import Registration, RegistrationStatus
from drawn_to_run.schemas.response import ApiResponse
from drawn_to_run.schemas.registration import (
    EventRegistrationCreate,
    RegistrationUpdate,
    RegistrationResponse,
    RegistrationDetail,
    RegistrationEvent,
    RegistrationOrganizer,
    RegistrationUser,
    RegistrationStatusResponse,
    RegistrationCancelResponse,
    CancelledRegistration,
)

# Mounted under /events/{event_id}/register
event_router = APIRouter()
# Mounted under /registrations
router = APIRouter()
logger = logging.getLogger(__name__)

RESULT_STATUSES = {RegistrationStatus.COMPLETED, RegistrationStatus.DNS, RegistrationStatus.DNF}


def _is_past(moment: datetime) -> bool:
    return ensure_utc(moment) < datetime.now(timezone.utc)


def serialize_registration(
    registration: Registration,
    event: Event,
    organizer_name: Optional[str],
    user: Optional[User] = None
) -> RegistrationDetail:
    return RegistrationDetail(
        **RegistrationResponse.model_validate(registration).model_dump(),
        event=RegistrationEvent(
            id=event.id,
            title=event.title,
            description=event.description,
            event_date=event.event_date,
            location=event.location,
            banner_image=event.banner_image,
            status=event.status.value,
            organizer=RegistrationOrganizer(name=organizer_name),
        ),
        user=RegistrationUser.model_validate(user) if user is not None else None,
    )


async def _get_event_or_404(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError("Event")
    return event


async def _load_registration(
    db: AsyncSession,
    registration_id: int
) -> Tuple[Registration, Event, User, Optional[str]]:
    organizer = aliased(User)
    stmt = (
        select(Registration, Event, User, organizer.name)
        .join(Event, Registration.event_id == Event.id)
        .join(User, Registration.user_id == User.id)
        .outerjoin(organizer, Event.created_by == organizer.id)
        .where(Registration.id == registration_id)
    )
    row = (await db.execute(stmt)).one_or_none()
    if row is None:
        raise NotFoundError("Registration")
    return tuple(row)


async def _organizer_name(db: AsyncSession, event: Event) -> Optional[str]:
    if event.created_by is None:
        return None
    result = await db.execute(select(User.name).where(User.id == event.created_by))
    return result.scalar_one_or_none()


def _is_event_organizer(user: User, event: Event) -> bool:
    return user.role == UserRole.ORGANIZER and event.created_by == user.id


@event_router.get("", response_model=ApiResponse[RegistrationStatusResponse])
async def get_registration_status(
    event_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Whether the current user is registered for the event
    """
    await _get_event_or_404(db, event_id)

    result = await db.execute(
        select(Registration).where(
            Registration.event_id == event_id,
            Registration.user_id == current_user.id
        )
    )
    registration = result.scalar_one_or_none()

    return ApiResponse(data=RegistrationStatusResponse(
        is_registered=registration is not None,
        registration=RegistrationResponse.model_validate(registration) if registration else None,
    ))


@event_router.post("", response_model=ApiResponse[RegistrationDetail], status_code=status.HTTP_201_CREATED)
async def register_for_event(
    registration_data: EventRegistrationCreate,
    event_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Register the current user for an event at one of its distances
    """
    event = await _get_event_or_404(db, event_id)

    if event.status != EventStatus.ACTIVE:
        raise BadRequestError("Cannot register for inactive events")

    if _is_past(event.event_date):
        raise BadRequestError("Cannot register for past events")

    distance = registration_data.distance
    if distance not in (event.distance_options or []):
        raise BadRequestError(f'Distance "{distance}" is not available for this event')

    if event.capacity:
        count_result = await db.execute(
            select(func.count(Registration.id)).where(
                Registration.event_id == event_id,
                Registration.status == RegistrationStatus.REGISTERED
            )
        )
        if (count_result.scalar() or 0) >= event.capacity:
            raise ConflictError("Event is at full capacity")

    existing = await db.execute(
        select(Registration.id).where(
            Registration.event_id == event_id,
            Registration.user_id == current_user.id
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError("You are already registered for this event")

    registration = Registration(
        user_id=current_user.id,
        event_id=event_id,
        distance=distance,
    )
    db.add(registration)
    await db.commit()
    await db.refresh(registration)

    logger.info(f"User {current_user.id} registered for event {event_id} ({distance})")

    organizer_name = await _organizer_name(db, event)
    return ApiResponse(data=serialize_registration(registration, event, organizer_name, current_user))


@event_router.delete("", response_model=ApiResponse[RegistrationCancelResponse])
async def cancel_registration(
    event_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Withdraw the current user's registration before the event starts
    """
    result = await db.execute(
        select(Registration, Event)
        .join(Event, Registration.event_id == Event.id)
        .where(Registration.event_id == event_id, Registration.user_id == current_user.id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Registration")
    registration, event = row

    if _is_past(event.event_date):
        raise BadRequestError("Cannot cancel registration for past events")

    cancelled = CancelledRegistration(
        id=registration.id,
        event_title=event.title,
        distance=registration.distance,
    )
    await db.execute(delete(Registration).where(Registration.id == registration.id))
    await db.commit()

    return ApiResponse(data=RegistrationCancelResponse(
        message="Registration cancelled successfully",
        cancelled_registration=cancelled,
    ))


@router.get("/{registration_id}", response_model=ApiResponse[RegistrationDetail])
async def get_registration(
    registration_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Registration details for its runner, the event's organizer, or an admin
    """
    registration, event, runner, organizer_name = await _load_registration(db, registration_id)

    can_view = (
        registration.user_id == current_user.id
        or current_user.role.is_admin
        or _is_event_organizer(current_user, event)
    )
    if not can_view:
        raise AuthorizationError("You do not have permission to view this registration")

    return ApiResponse(data=serialize_registration(registration, event, organizer_name, runner))


@router.put("/{registration_id}", response_model=ApiResponse[RegistrationDetail])
async def update_registration(
    update: RegistrationUpdate,
    registration_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Update status, bib number, finish time or linked activity
    """
    registration, event, runner, organizer_name = await _load_registration(db, registration_id)

    is_owner = registration.user_id == current_user.id
    is_organizer = _is_event_organizer(current_user, event)
    is_admin = current_user.role.is_admin

    if not (is_owner or is_organizer or is_admin):
        raise AuthorizationError("You do not have permission to update this registration")

    update_data = update.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise BadRequestError("No valid fields to update")

    new_status = RegistrationStatus(update_data["status"]) if "status" in update_data else None
    if new_status in RESULT_STATUSES and not (is_organizer or is_admin):
        raise AuthorizationError("Only event organizers can update race completion status")

    if ("bib_number" in update_data or "finish_time" in update_data) and not (is_organizer or is_admin):
        raise AuthorizationError("Only event organizers can update bib numbers and finish times")

    for field, value in update_data.items():
        setattr(registration, field, value)

    if new_status is not None:
        registration.status = new_status
        if new_status == RegistrationStatus.COMPLETED:
            registration.completed_at = utcnow()

    await db.commit()
    await db.refresh(registration)

    return ApiResponse(data=serialize_registration(registration, event, organizer_name, runner))


@router.delete("/{registration_id}", response_model=ApiResponse[RegistrationCancelResponse])
async def delete_registration(
    registration_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Cancel a registration; admins may also cancel after the event
    """
    registration, event, _runner, _organizer_name = await _load_registration(db, registration_id)

    is_admin = current_user.role.is_admin
    if registration.user_id != current_user.id and not is_admin:
        raise AuthorizationError("You can only cancel your own registrations")

    if _is_past(event.event_date) and not is_admin:
        raise BadRequestError("Cannot cancel registration for past events")

    cancelled = CancelledRegistration(
        id=registration.id,
        event_title=event.title,
        distance=registration.distance,
    )
    await db.execute(delete(Registration).where(Registration.id == registration.id))
    await db.commit()

    return ApiResponse(data=RegistrationCancelResponse(
        message="Registration cancelled successfully",
        cancelled_registration=cancelled,
    ))
