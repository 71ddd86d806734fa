# eduplatform/models/user.py
from sqlalchemy import Column, String, Boolean, Date, DateTime, Enum, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from .base import Base
from .enums import UserRole


class User(Base):
    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.STUDENT, nullable=False, index=True)

    phone = Column(String(20))
    date_of_birth = Column(Date)
    profile_image_url = Column(String(500))

    # Users are deactivated, never deleted while other rows reference them
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_login = Column(DateTime(timezone=True))

    # Relationships
    enrollments = relationship("Enrollment", back_populates="student", foreign_keys="Enrollment.student_id")
    instructed_courses = relationship("Course", back_populates="instructor")
    submissions = relationship("Submission", back_populates="student", foreign_keys="Submission.student_id")
    notifications = relationship("Notification", back_populates="user")


class ParentStudentLink(Base):
    __tablename__ = "parent_student_links"
    __table_args__ = (
        UniqueConstraint("parent_id", "student_id", name="uq_parent_student_link"),
    )

    parent_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    relationship_type = Column(String(50), default="parent", nullable=False)

    parent = relationship("User", foreign_keys=[parent_id])
    student = relationship("User", foreign_keys=[student_id])
