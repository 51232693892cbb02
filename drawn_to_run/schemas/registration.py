"""
Registration schemas
"""

from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime

from drawn_to_run.config import settings
from drawn_to_run.schemas.base import BaseSchema, IDSchema
from drawn_to_run.models.registration import RegistrationStatus


class EventRegistrationCreate(BaseSchema):
    """Sign up for an event at one of its distances"""
    distance: str

    @field_validator('distance')
    @classmethod
    def validate_distance(cls, v):
        if not v:
            raise ValueError('Distance selection is required')
        return v


class RegistrationUpdate(BaseSchema):
    """Race-day updates; bib and result fields are organizer-only"""
    status: Optional[RegistrationStatus] = None
    bib_number: Optional[int] = Field(None, gt=0)
    # ISO 8601 duration, e.g. PT1H30M45S
    finish_time: Optional[str] = None
    strava_activity_id: Optional[str] = None


class RegistrationQuery(BaseSchema):
    page: int = Field(1, ge=1)
    limit: int = Field(settings.REGISTRATIONS_DEFAULT_LIMIT, ge=1)
    status: Optional[str] = None

    @field_validator('limit')
    @classmethod
    def clamp_limit(cls, v):
        return min(v, settings.MAX_PAGE_LIMIT)

    @property
    def status_filter(self) -> Optional[RegistrationStatus]:
        """Unknown status values are ignored rather than rejected"""
        try:
            return RegistrationStatus(self.status) if self.status else None
        except ValueError:
            return None


class RegistrationResponse(IDSchema):
    user_id: int
    event_id: int
    distance: str
    status: RegistrationStatus
    bib_number: Optional[int] = None
    finish_time: Optional[str] = None
    strava_activity_id: Optional[str] = None
    registered_at: datetime
    completed_at: Optional[datetime] = None


class RegistrationOrganizer(BaseSchema):
    name: Optional[str] = None


class RegistrationEvent(BaseSchema):
    id: int
    title: str
    description: Optional[str] = None
    event_date: datetime
    location: str
    banner_image: Optional[str] = None
    status: Optional[str] = None
    organizer: Optional[RegistrationOrganizer] = None


class RegistrationUser(BaseSchema):
    id: int
    name: str
    email: str
    profile_image: Optional[str] = None


class RegistrationDetail(RegistrationResponse):
    event: RegistrationEvent
    user: Optional[RegistrationUser] = None


class RegistrationStatusResponse(BaseSchema):
    is_registered: bool
    registration: Optional[RegistrationResponse] = None


class RegistrationStats(BaseSchema):
    total_registrations: int
    completed_events: int
    upcoming_events: int
    dns_count: int
    dnf_count: int


class RegistrationOwner(BaseSchema):
    id: int
    name: str
    email: str


class UserRegistrationsResponse(BaseSchema):
    registrations: List[RegistrationDetail]
    user: RegistrationOwner
    stats: RegistrationStats


class CancelledRegistration(BaseSchema):
    id: int
    event_title: str
    distance: str


class RegistrationCancelResponse(BaseSchema):
    message: str
    cancelled_registration: CancelledRegistration
