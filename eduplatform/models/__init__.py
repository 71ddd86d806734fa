# eduplatform/models/__init__.py
"""Import all models here so Alembic and create_all see every table."""
from .base import Base
from .enums import (
    UserRole, EnrollmentStatus, AttendanceStatus, SessionStatus, ContentType, NotificationType
)
from .user import User, ParentStudentLink
from .course import Course
from .enrollment import Enrollment
from .assignment import Assignment, Submission
from .session import ClassSession, Attendance
from .content import Content
from .notification import Notification

__all__ = [
    "Base",
    "UserRole",
    "EnrollmentStatus",
    "AttendanceStatus",
    "SessionStatus",
    "ContentType",
    "NotificationType",
    "User",
    "ParentStudentLink",
    "Course",
    "Enrollment",
    "Assignment",
    "Submission",
    "ClassSession",
    "Attendance",
    "Content",
    "Notification",
]
