# eduplatform/models/content.py
from sqlalchemy import Column, String, Integer, Boolean, Enum, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base
from .enums import ContentType


class Content(Base):
    __tablename__ = "content"

    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)
    content_type = Column(Enum(ContentType, name="content_type"), default=ContentType.TEXT, nullable=False)
    file_url = Column(String(500))
    duration_minutes = Column(Integer)
    order_index = Column(Integer, default=0, nullable=False, index=True)
    is_public = Column(Boolean, default=False, nullable=False)

    course = relationship("Course", back_populates="content")
