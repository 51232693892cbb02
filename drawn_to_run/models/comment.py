"""
Comment model
"""

from sqlalchemy import Column, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship

from drawn_to_run.models.base import BaseModel


class Comment(BaseModel):
    """
    Comment on an event; parent_id links replies into a thread
    """
    __tablename__ = "comments"

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("comments.id"), index=True)
    content = Column(Text, nullable=False)

    # Relationships
    event = relationship("Event", back_populates="comments")
    user = relationship("User", back_populates="comments")

    def __repr__(self):
        return f"<Comment(id={self.id}, event_id={self.event_id}, parent_id={self.parent_id})>"
