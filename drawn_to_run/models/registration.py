"""
Registration model
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
import enum

from drawn_to_run.core.database import Base
from drawn_to_run.models.base import utcnow


class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"
    COMPLETED = "completed"
    DNS = "dns"  # did not start
    DNF = "dnf"  # did not finish


class Registration(Base):
    """
    A user's entry into an event at a chosen distance
    """
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    distance = Column(String(50), nullable=False)
    status = Column(
        Enum(RegistrationStatus, values_callable=lambda statuses: [s.value for s in statuses], native_enum=False),
        default=RegistrationStatus.REGISTERED,
        nullable=False
    )
    bib_number = Column(Integer)
    # ISO 8601 duration, e.g. PT1H30M45S
    finish_time = Column(String(32))
    strava_activity_id = Column(String(50))
    registered_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False
    )
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", back_populates="registrations")
    event = relationship("Event", back_populates="registrations")

    def __repr__(self):
        return f"<Registration(id={self.id}, user_id={self.user_id}, event_id={self.event_id}, status={self.status})>"
