"""
Event schemas
"""

from pydantic import Field, HttpUrl, field_validator
from typing import Optional, List, Literal
from datetime import datetime

from drawn_to_run.config import settings
from drawn_to_run.schemas.base import BaseSchema, IDSchema, TimestampSchema
from drawn_to_run.schemas.response import PaginationMeta
from drawn_to_run.schemas.tag import TagResponse
from drawn_to_run.models.event import EventStatus


class EventCreate(BaseSchema):
    """Event creation schema"""
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    event_date: datetime
    location: str = Field(..., min_length=1)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_options: List[str]
    capacity: Optional[int] = Field(None, gt=0)
    registration_fee: Optional[float] = Field(None, ge=0)
    early_bird_fee: Optional[float] = Field(None, ge=0)
    early_bird_deadline: Optional[datetime] = None
    banner_image: Optional[HttpUrl] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Riverside 10K",
                "description": "Flat, fast loop along the river",
                "event_date": "2026-05-10T08:00:00Z",
                "location": "Riverside Park",
                "distance_options": ["5K", "10K"],
                "capacity": 300,
                "registration_fee": 25.0
            }
        }
    }

    @field_validator('distance_options')
    @classmethod
    def validate_distance_options(cls, v):
        if v is not None and len(v) < 1:
            raise ValueError('At least one distance option required')
        return v


class EventUpdate(BaseSchema):
    """Event update schema; status may be set to any enum member"""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=1)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_options: Optional[List[str]] = None
    capacity: Optional[int] = Field(None, gt=0)
    registration_fee: Optional[float] = Field(None, ge=0)
    early_bird_fee: Optional[float] = Field(None, ge=0)
    early_bird_deadline: Optional[datetime] = None
    banner_image: Optional[HttpUrl] = None
    status: Optional[EventStatus] = None

    @field_validator('distance_options')
    @classmethod
    def validate_distance_options(cls, v):
        if v is not None and len(v) < 1:
            raise ValueError('At least one distance option required')
        return v


class EventQuery(BaseSchema):
    """Query string for the event listing"""
    page: int = Field(1, ge=1)
    limit: int = Field(settings.EVENTS_DEFAULT_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT)
    search: Optional[str] = None
    location: Optional[str] = None
    distance: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    # comma-separated tag ids
    tags: Optional[str] = None
    sort: Literal['date', 'event_date', 'title', 'location', 'created_at'] = 'event_date'
    order: Literal['asc', 'desc'] = 'asc'

    @property
    def tag_ids(self) -> List[int]:
        if not self.tags:
            return []
        return [int(part) for part in (p.strip() for p in self.tags.split(',')) if part.isdigit()]


class TagAssignment(BaseSchema):
    """Body for attaching/detaching tags"""
    tagIds: List[int]

    @field_validator('tagIds')
    @classmethod
    def validate_tag_ids(cls, v):
        if any(tag_id <= 0 for tag_id in v):
            raise ValueError('Tag ids must be positive integers')
        return v


class OrganizerSummary(BaseSchema):
    name: str
    email: Optional[str] = None
    profile_image: Optional[str] = None


class EventResponse(IDSchema, TimestampSchema):
    """Event response schema"""
    title: str
    description: Optional[str] = None
    event_date: datetime
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_options: List[str]
    capacity: Optional[int] = None
    registration_fee: Optional[float] = None
    early_bird_fee: Optional[float] = None
    early_bird_deadline: Optional[datetime] = None
    banner_image: Optional[str] = None
    created_by: Optional[int] = None
    status: EventStatus
    organizer: Optional[OrganizerSummary] = None
    tags: List[TagResponse] = []
    registration_count: int = 0


class EventDetail(EventResponse):
    """Single event with its comment count"""
    comment_count: int = 0


class EventListResponse(BaseSchema):
    events: List[EventResponse]
    meta: PaginationMeta


class DeletedEvent(BaseSchema):
    id: int
    title: str


class EventDeleteResponse(BaseSchema):
    message: str
    deleted_event: DeletedEvent
