# eduplatform/services/course_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import BadRequestError, NotFoundError
from ..core.permissions import get_managed_course
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import EnrollmentStatus, UserRole
from ..models.user import User
from ..utils.pagination import PaginationParams

logger = logging.getLogger(__name__)


def active_count_subquery():
    """Correlated count of active enrollments for Course rows."""
    return (
        select(func.count(Enrollment.id))
        .where(Enrollment.course_id == Course.id, Enrollment.status == EnrollmentStatus.ACTIVE)
        .correlate(Course)
        .scalar_subquery()
    )


def course_to_dict(course: Course, enrolled_count: int, instructor: Optional[User] = None) -> Dict[str, Any]:
    data = {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "price": course.price,
        "duration_weeks": course.duration_weeks,
        "max_students": course.max_students,
        "difficulty_level": course.difficulty_level,
        "is_active": course.is_active,
        "instructor_id": course.instructor_id,
        "enrolled_count": enrolled_count,
        "available_seats": max(course.max_students - enrolled_count, 0),
        "created_at": course.created_at,
        "updated_at": course.updated_at,
    }
    if instructor is not None:
        data["instructor"] = {"id": instructor.id, "name": instructor.name, "email": instructor.email}
    return data


class CourseService(BaseService[Course]):
    def __init__(self, db: AsyncSession):
        super().__init__(Course, db)

    async def active_enrollment_count(self, course_id: UUID) -> int:
        stmt = select(func.count()).select_from(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.status == EnrollmentStatus.ACTIVE
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def list_courses(
        self,
        params: PaginationParams,
        search: Optional[str] = None,
        instructor_id: Optional[UUID] = None,
        price_max: Optional[float] = None
    ) -> Dict[str, Any]:
        """Public catalogue of active courses with their current enrollment counts."""
        conditions = [Course.is_active == True]
        if search:
            conditions.append(func.lower(Course.title).like(f"%{search.lower()}%"))
        if instructor_id:
            conditions.append(Course.instructor_id == instructor_id)
        if price_max is not None:
            conditions.append(Course.price <= price_max)

        total = (await self.db.execute(
            select(func.count()).select_from(Course).where(*conditions)
        )).scalar_one()

        stmt = (
            select(Course, User, active_count_subquery().label("enrolled_count"))
            .join(User, User.id == Course.instructor_id)
            .where(*conditions)
            .order_by(Course.created_at.desc())
            .offset(params.offset)
            .limit(params.size)
        )
        rows = (await self.db.execute(stmt)).all()
        items = [course_to_dict(course, count, instructor) for course, instructor, count in rows]
        return {"items": items, "total": total}

    async def get_course_detail(self, course_id: UUID) -> Dict[str, Any]:
        course = await self.get(course_id)
        if not course:
            raise NotFoundError("Course")
        instructor = await self.db.get(User, course.instructor_id)
        count = await self.active_enrollment_count(course.id)
        return course_to_dict(course, count, instructor)

    async def _get_active_teacher(self, teacher_id: UUID) -> User:
        teacher = await self.db.get(User, teacher_id)
        if not teacher or teacher.role != UserRole.TEACHER or not teacher.is_active:
            raise NotFoundError("Instructor", "Instructor not found or not an active teacher")
        return teacher

    async def create_course(self, user: User, data: Dict[str, Any]) -> Course:
        instructor_id = data.pop("instructor_id", None)
        if user.role == UserRole.TEACHER:
            instructor_id = user.id
        elif instructor_id is None:
            raise BadRequestError("instructor_id is required")
        else:
            await self._get_active_teacher(instructor_id)

        course = await self.create({**data, "instructor_id": instructor_id})
        logger.info(f"Course {course.id} created by {user.id}")
        return course

    async def update_course(self, user: User, course_id: UUID, data: Dict[str, Any]) -> Course:
        course = await get_managed_course(self.db, user, course_id, action="update")

        if "instructor_id" in data:
            # Only admins reassign courses
            if user.role != UserRole.ADMIN:
                data.pop("instructor_id")
            else:
                await self._get_active_teacher(data["instructor_id"])

        if data.get("max_students") is not None:
            enrolled = await self.active_enrollment_count(course.id)
            if data["max_students"] < enrolled:
                raise BadRequestError(
                    f"max_students cannot be lower than the {enrolled} students currently enrolled"
                )

        return await self.update(course, data)

    async def deactivate_course(self, course_id: UUID) -> Course:
        course = await self.get(course_id)
        if not course:
            raise NotFoundError("Course")
        course = await self.deactivate(course)
        logger.info(f"Course {course.id} deactivated")
        return course

    async def list_students(self, user: User, course_id: UUID) -> List[Dict[str, Any]]:
        course = await get_managed_course(self.db, user, course_id, action="view students of")
        stmt = (
            select(Enrollment, User)
            .join(User, User.id == Enrollment.student_id)
            .where(Enrollment.course_id == course.id)
            .order_by(User.name)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "enrollment_id": enrollment.id,
                "student_id": student.id,
                "name": student.name,
                "email": student.email,
                "status": enrollment.status,
                "progress_percentage": enrollment.progress_percentage,
                "final_grade": enrollment.final_grade,
                "enrollment_date": enrollment.enrollment_date,
            }
            for enrollment, student in rows
        ]
