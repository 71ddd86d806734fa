# eduplatform/models/session.py
from sqlalchemy import Column, String, DateTime, Enum, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from .base import Base
from .enums import AttendanceStatus, SessionStatus


class ClassSession(Base):
    __tablename__ = "class_sessions"

    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)
    scheduled_start = Column(DateTime(timezone=True), nullable=False, index=True)
    scheduled_end = Column(DateTime(timezone=True), nullable=False)

    # Meeting metadata
    meeting_id = Column(String(100))
    meeting_url = Column(String(500))
    meeting_password = Column(String(100))

    status = Column(
        Enum(SessionStatus, name="session_status"),
        default=SessionStatus.SCHEDULED,
        nullable=False,
        index=True
    )

    # Relationships
    course = relationship("Course", back_populates="sessions")
    attendance_records = relationship("Attendance", back_populates="session", passive_deletes=True)


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_attendance_session_student"),
    )

    session_id = Column(Uuid, ForeignKey("class_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(
        Enum(AttendanceStatus, name="attendance_status"),
        default=AttendanceStatus.ABSENT,
        nullable=False
    )
    join_time = Column(DateTime(timezone=True))
    leave_time = Column(DateTime(timezone=True))
    notes = Column(Text)

    # Relationships
    session = relationship("ClassSession", back_populates="attendance_records")
    student = relationship("User")
