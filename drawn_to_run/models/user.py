"""
User model
"""

from sqlalchemy import Column, String, Boolean, Text, Enum
from sqlalchemy.orm import relationship
import enum

from drawn_to_run.models.base import BaseModel


class UserRole(str, enum.Enum):
    PARTICIPANT = "participant"
    ORGANIZER = "organizer"
    ADMIN = "admin"

    @property
    def is_admin(self) -> bool:
        return self is UserRole.ADMIN

    @property
    def can_manage_events(self) -> bool:
        if self is UserRole.ADMIN or self is UserRole.ORGANIZER:
            return True
        if self is UserRole.PARTICIPANT:
            return False
        raise ValueError(f"Unhandled role: {self!r}")


class User(BaseModel):
    """
    Runner, organizer or administrator account
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255))
    role = Column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles], native_enum=False),
        default=UserRole.PARTICIPANT,
        nullable=False
    )
    email_verified = Column(Boolean, default=False, nullable=False)
    profile_image = Column(Text)
    bio = Column(Text)

    # Relationships
    events_created = relationship("Event", back_populates="creator")
    registrations = relationship("Registration", back_populates="user")
    comments = relationship("Comment", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
