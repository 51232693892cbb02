"""
Tag model
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from drawn_to_run.core.database import Base
from drawn_to_run.models.event import event_tags


class Tag(Base):
    """
    Read-only reference label such as "Trail" or "Beginner friendly"
    """
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    # 'distance', 'location', 'type', 'difficulty'
    category = Column(String(50))
    # hex colour code
    color = Column(String(7))

    events = relationship("Event", secondary=event_tags, back_populates="tags")

    def __repr__(self):
        return f"<Tag(id={self.id}, name={self.name}, category={self.category})>"
