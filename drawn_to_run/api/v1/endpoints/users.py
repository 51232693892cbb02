"""
User profile and registration history endpoints
"""

from typing import Any, Annotated
from datetime import datetime, timezone
import logging
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from drawn_to_run.core.database import get_session
from drawn_to_run.core.exceptions import AuthorizationError, BadRequestError, NotFoundError
from drawn_to_run.core.security import require_authenticated
from drawn_to_run.models.base import ensure_utc
from drawn_to_run.models.user import User
from drawn_to_run.models.event import Event
from drawn_to_run.models.registration import Registration, RegistrationStatus
from drawn_to_run.schemas.response import ApiResponse, PaginationMeta
from drawn_to_run.schemas.user import UserResponse, UserUpdate
from drawn_to_run.schemas.registration import (
    RegistrationQuery,
    RegistrationOwner,
    RegistrationStats,
    UserRegistrationsResponse,
)
from drawn_to_run.api.v1.endpoints.registrations import serialize_registration

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User")
    return user


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user_profile(
    user_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Public profile
    """
    user = await _get_user_or_404(db, user_id)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user_profile(
    user_update: UserUpdate,
    user_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Update a profile; users edit their own, admins edit anyone's
    """
    if current_user.id != user_id and not current_user.role.is_admin:
        raise AuthorizationError("You can only update your own profile")

    update_data = user_update.model_dump(exclude_unset=True)
    if not update_data:
        raise BadRequestError("No valid fields to update")

    user = await _get_user_or_404(db, user_id)

    new_email = update_data.get("email")
    if new_email and new_email != user.email:
        result = await db.execute(
            select(User.id).where(User.email == new_email, User.id != user_id)
        )
        if result.scalar_one_or_none():
            raise BadRequestError("Email address is already in use")
        user.email = new_email
        user.email_verified = False

    if "name" in update_data and update_data["name"] is not None:
        user.name = update_data["name"]

    if "bio" in update_data:
        user.bio = update_data["bio"] or None

    if "profile_image" in update_data:
        image = update_data["profile_image"]
        user.profile_image = str(image) if image else None

    await db.commit()
    await db.refresh(user)

    return ApiResponse(data=UserResponse.model_validate(user))


@router.get("/{user_id}/registrations", response_model=ApiResponse[UserRegistrationsResponse])
async def get_user_registrations(
    params: Annotated[RegistrationQuery, Query()],
    user_id: int = Path(..., gt=0),
    current_user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    A user's registrations, newest first. Visible to that user and to admins.
    """
    if current_user.id != user_id and not current_user.role.is_admin:
        raise AuthorizationError("You can only view your own registrations")

    owner = await _get_user_or_404(db, user_id)

    filters = [Registration.user_id == user_id]
    status_filter = params.status_filter
    if status_filter:
        filters.append(Registration.status == status_filter)

    stmt = (
        select(Registration, Event, User.name.label("organizer_name"))
        .join(Event, Registration.event_id == Event.id)
        .outerjoin(User, Event.created_by == User.id)
        .where(*filters)
        .order_by(Registration.registered_at.desc(), Registration.id.desc())
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
    )
    rows = (await db.execute(stmt)).all()

    total_result = await db.execute(select(func.count(Registration.id)).where(*filters))
    total = total_result.scalar() or 0

    registrations = [
        serialize_registration(registration, event, organizer_name)
        for registration, event, organizer_name in rows
    ]

    now = datetime.now(timezone.utc)
    stats = RegistrationStats(
        total_registrations=total,
        completed_events=sum(1 for r in registrations if r.status == RegistrationStatus.COMPLETED.value),
        upcoming_events=sum(
            1 for r in registrations
            if r.status == RegistrationStatus.REGISTERED.value and ensure_utc(r.event.event_date) > now
        ),
        dns_count=sum(1 for r in registrations if r.status == RegistrationStatus.DNS.value),
        dnf_count=sum(1 for r in registrations if r.status == RegistrationStatus.DNF.value),
    )

    return ApiResponse(
        data=UserRegistrationsResponse(
            registrations=registrations,
            user=RegistrationOwner.model_validate(owner),
            stats=stats,
        ),
        meta=PaginationMeta.build(params.page, params.limit, total),
    )
