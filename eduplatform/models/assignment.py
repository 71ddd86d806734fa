# eduplatform/models/assignment.py
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Text, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship
from .base import Base
from ..utils.time import utcnow


class Assignment(Base):
    __tablename__ = "assignments"

    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    due_date = Column(DateTime(timezone=True), index=True)
    max_points = Column(Numeric(5, 2), default=100, nullable=False)
    assignment_type = Column(String(50), default="homework", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    course = relationship("Course", back_populates="assignments")
    created_by = relationship("User", foreign_keys=[created_by_id])
    submissions = relationship("Submission", back_populates="assignment", passive_deletes=True)


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    assignment_id = Column(Uuid, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    submission_text = Column(Text)
    file_url = Column(String(500))
    submitted_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    # Grading
    grade = Column(Numeric(5, 2))
    feedback = Column(Text)
    graded_at = Column(DateTime(timezone=True))
    graded_by_id = Column(Uuid, ForeignKey("users.id"))

    # Relationships
    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", back_populates="submissions", foreign_keys=[student_id])
    graded_by = relationship("User", foreign_keys=[graded_by_id])
