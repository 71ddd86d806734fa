# eduplatform/models/enrollment.py
from sqlalchemy import Column, DateTime, Enum, Numeric, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship
from .base import Base
from .enums import EnrollmentStatus
from ..utils.time import utcnow


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        # One row per student/course pair; dropping and re-enrolling reuses it
        UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),
    )

    # Foreign Keys
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    # Enrollment Details
    enrollment_date = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    status = Column(
        Enum(EnrollmentStatus, name="enrollment_status"),
        default=EnrollmentStatus.ACTIVE,
        nullable=False,
        index=True
    )
    progress_percentage = Column(Numeric(5, 2), default=0, nullable=False)
    final_grade = Column(Numeric(5, 2))

    # Relationships
    student = relationship("User", back_populates="enrollments", foreign_keys=[student_id])
    course = relationship("Course", back_populates="enrollments")
