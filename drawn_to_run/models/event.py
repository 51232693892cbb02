"""
Event model
"""

from sqlalchemy import Column, String, Integer, Text, DateTime, Float, Numeric, ForeignKey, Enum, JSON, Table
from sqlalchemy.orm import relationship
import enum

from drawn_to_run.core.database import Base
from drawn_to_run.models.base import BaseModel


class EventStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


event_tags = Table(
    "event_tags",
    Base.metadata,
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Event(BaseModel):
    """
    A running event with one or more distances on offer
    """
    __tablename__ = "events"

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    location = Column(String(255), nullable=False, index=True)
    latitude = Column(Float)
    longitude = Column(Float)
    # e.g. ["5K", "10K", "Half Marathon"]
    distance_options = Column(JSON, nullable=False, default=list)
    capacity = Column(Integer)
    registration_fee = Column(Numeric(10, 2, asdecimal=False))
    early_bird_fee = Column(Numeric(10, 2, asdecimal=False))
    early_bird_deadline = Column(DateTime(timezone=True))
    banner_image = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id"), index=True)
    status = Column(
        Enum(EventStatus, values_callable=lambda statuses: [s.value for s in statuses], native_enum=False),
        default=EventStatus.ACTIVE,
        nullable=False,
        index=True
    )

    # Relationships
    creator = relationship("User", back_populates="events_created")
    registrations = relationship("Registration", back_populates="event")
    comments = relationship("Comment", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
    tags = relationship("Tag", secondary=event_tags, back_populates="events", order_by="Tag.name")

    def __repr__(self):
        return f"<Event(id={self.id}, title={self.title}, status={self.status})>"
