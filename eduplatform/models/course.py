# eduplatform/models/course.py
from sqlalchemy import Column, String, Integer, Boolean, Numeric, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Course(Base):
    __tablename__ = "courses"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), default=0, nullable=False)
    duration_weeks = Column(Integer, default=1, nullable=False)
    max_students = Column(Integer, default=30, nullable=False)
    difficulty_level = Column(String(50))
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    instructor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships; dependents are removed by the database FK cascade
    instructor = relationship("User", back_populates="instructed_courses")
    enrollments = relationship("Enrollment", back_populates="course", passive_deletes=True)
    assignments = relationship("Assignment", back_populates="course", passive_deletes=True)
    sessions = relationship("ClassSession", back_populates="course", passive_deletes=True)
    content = relationship("Content", back_populates="course", passive_deletes=True)
