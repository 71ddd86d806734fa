# eduplatform/core/permissions.py
"""Ownership checks layered on top of the role guards.

Admins pass every check. Teachers own their courses and everything hanging
off them, students own their own rows, parents see linked students only.
"""
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .exceptions import NotFoundError, PermissionDeniedError
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import EnrollmentStatus, UserRole
from ..models.user import ParentStudentLink, User


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


async def get_managed_course(db: AsyncSession, user: User, course_id: UUID, action: str = "manage") -> Course:
    """Load a course the user may modify: admin, or the teacher who instructs it."""
    course = await db.get(Course, course_id)
    if not course:
        raise NotFoundError("Course")
    if is_admin(user):
        return course
    if user.role == UserRole.TEACHER and course.instructor_id == user.id:
        return course
    raise PermissionDeniedError(f"You can only {action} your own courses")


async def is_actively_enrolled(db: AsyncSession, student_id: UUID, course_id: UUID) -> bool:
    stmt = select(Enrollment.id).where(
        Enrollment.student_id == student_id,
        Enrollment.course_id == course_id,
        Enrollment.status == EnrollmentStatus.ACTIVE
    )
    result = await db.execute(stmt)
    return result.first() is not None


async def linked_student_ids(db: AsyncSession, parent_id: UUID) -> List[UUID]:
    stmt = select(ParentStudentLink.student_id).where(ParentStudentLink.parent_id == parent_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def ensure_can_view_course(db: AsyncSession, user: User, course: Course) -> None:
    """Course-scoped reads: instructor, actively enrolled student, parent of one, admin."""
    if is_admin(user):
        return
    if user.role == UserRole.TEACHER and course.instructor_id == user.id:
        return
    if user.role == UserRole.STUDENT and await is_actively_enrolled(db, user.id, course.id):
        return
    if user.role == UserRole.PARENT:
        children = await linked_student_ids(db, user.id)
        if children:
            stmt = select(Enrollment.id).where(
                Enrollment.course_id == course.id,
                Enrollment.student_id.in_(children),
                Enrollment.status == EnrollmentStatus.ACTIVE
            )
            result = await db.execute(stmt)
            if result.first() is not None:
                return
    raise PermissionDeniedError("Access denied")
