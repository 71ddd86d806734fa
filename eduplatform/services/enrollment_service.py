# eduplatform/services/enrollment_service.py
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .course_service import active_count_subquery, course_to_dict
from .notification_service import NotificationService
from ..core.exceptions import BadRequestError, ConflictError, NotFoundError
from ..core.permissions import get_managed_course
from ..models.assignment import Assignment, Submission
from ..models.content import Content
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import EnrollmentStatus, NotificationType
from ..models.session import ClassSession
from ..models.user import User
from ..utils.pagination import PaginationParams
from ..utils.time import utcnow

logger = logging.getLogger(__name__)


class EnrollmentService(BaseService[Enrollment]):
    def __init__(self, db: AsyncSession):
        super().__init__(Enrollment, db)

    async def get_by_student_and_course(self, student_id: UUID, course_id: UUID) -> Optional[Enrollment]:
        """Get the single enrollment row for a student/course pair"""
        stmt = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def enroll(self, student: User, course_id: UUID) -> Tuple[Enrollment, bool]:
        """
        Enroll a student in a course.

        The course row is locked before the seat count so two concurrent
        requests at the capacity boundary cannot both pass. A dropped or
        completed row is reused instead of inserting a second one.

        Returns:
            (enrollment, created) where created is False for a reactivation
        """
        stmt = select(Course).where(Course.id == course_id, Course.is_active == True).with_for_update()
        course = (await self.db.execute(stmt)).scalar_one_or_none()
        if not course:
            raise NotFoundError("Course", "Course not found or inactive")

        existing = await self.get_by_student_and_course(student.id, course.id)
        if existing and existing.status == EnrollmentStatus.ACTIVE:
            raise ConflictError("Already enrolled in this course")

        active_count = (await self.db.execute(
            select(func.count()).select_from(Enrollment).where(
                Enrollment.course_id == course.id,
                Enrollment.status == EnrollmentStatus.ACTIVE
            )
        )).scalar_one()
        if active_count >= course.max_students:
            raise BadRequestError("Course is at maximum capacity")

        if existing:
            existing.status = EnrollmentStatus.ACTIVE
            existing.enrollment_date = utcnow()
            enrollment = existing
            created = False
        else:
            enrollment = Enrollment(
                student_id=student.id,
                course_id=course.id,
                status=EnrollmentStatus.ACTIVE,
                progress_percentage=0
            )
            self.db.add(enrollment)
            created = True

        await NotificationService(self.db).notify(
            student.id,
            "Enrollment confirmed",
            f"You are now enrolled in {course.title}",
            NotificationType.SUCCESS,
            action_url=f"/student/courses/{course.id}"
        )
        await self.db.commit()
        await self.db.refresh(enrollment)

        logger.info(
            f"Student {student.id} {'enrolled in' if created else 're-enrolled in'} course {course.id} "
            f"({active_count + 1}/{course.max_students})"
        )
        return enrollment, created

    async def drop(self, student_id: UUID, course_id: UUID) -> Enrollment:
        enrollment = await self.get_by_student_and_course(student_id, course_id)
        if not enrollment or enrollment.status != EnrollmentStatus.ACTIVE:
            raise NotFoundError("Enrollment", "No active enrollment found for this course")
        enrollment = await self.update(enrollment, {"status": EnrollmentStatus.DROPPED})
        logger.info(f"Student {student_id} dropped course {course_id}")
        return enrollment

    async def unenroll(self, course_id: UUID, student_id: UUID) -> Enrollment:
        """Admin removal; same state change as a drop."""
        return await self.drop(student_id, course_id)

    async def list_enrolled_courses(self, student_id: UUID, status: Optional[EnrollmentStatus] = None) -> List[Dict[str, Any]]:
        stmt = (
            select(Enrollment, Course, User)
            .join(Course, Course.id == Enrollment.course_id)
            .join(User, User.id == Course.instructor_id)
            .where(Enrollment.student_id == student_id)
            .order_by(Enrollment.enrollment_date.desc())
        )
        if status is not None:
            stmt = stmt.where(Enrollment.status == status)
        else:
            stmt = stmt.where(Enrollment.status != EnrollmentStatus.DROPPED)

        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "enrollment_id": enrollment.id,
                "status": enrollment.status,
                "enrollment_date": enrollment.enrollment_date,
                "progress_percentage": enrollment.progress_percentage,
                "final_grade": enrollment.final_grade,
                "course": {
                    "id": course.id,
                    "title": course.title,
                    "description": course.description,
                    "duration_weeks": course.duration_weeks,
                    "difficulty_level": course.difficulty_level,
                    "instructor": {"id": instructor.id, "name": instructor.name},
                },
            }
            for enrollment, course, instructor in rows
        ]

    async def list_available_courses(
        self,
        student_id: UUID,
        params: PaginationParams,
        search: Optional[str] = None,
        price_max: Optional[float] = None
    ) -> Dict[str, Any]:
        """Active courses the student is not taking and has not completed."""
        taken = select(Enrollment.course_id).where(
            Enrollment.student_id == student_id,
            Enrollment.status.in_([EnrollmentStatus.ACTIVE, EnrollmentStatus.COMPLETED])
        )
        conditions = [Course.is_active == True, Course.id.not_in(taken)]
        if search:
            conditions.append(func.lower(Course.title).like(f"%{search.lower()}%"))
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

    async def get_course_details(self, student_id: UUID, course_id: UUID) -> Dict[str, Any]:
        """Course view for a student who is, or once was, enrolled."""
        enrollment = await self.get_by_student_and_course(student_id, course_id)
        if not enrollment:
            raise NotFoundError("Enrollment", "You are not enrolled in this course")

        course = await self.db.get(Course, course_id)
        instructor = await self.db.get(User, course.instructor_id)

        assignments = (await self.db.execute(
            select(Assignment, Submission)
            .outerjoin(Submission, (Submission.assignment_id == Assignment.id) & (Submission.student_id == student_id))
            .where(Assignment.course_id == course_id, Assignment.is_active == True)
            .order_by(Assignment.due_date.asc())
        )).all()

        sessions = (await self.db.execute(
            select(ClassSession)
            .where(ClassSession.course_id == course_id, ClassSession.scheduled_start >= utcnow())
            .order_by(ClassSession.scheduled_start.asc())
            .limit(5)
        )).scalars().all()

        content_count = (await self.db.execute(
            select(func.count()).select_from(Content).where(Content.course_id == course_id)
        )).scalar_one()

        return {
            "course": course_to_dict(course, await self._active_count(course_id), instructor),
            "enrollment": {
                "id": enrollment.id,
                "status": enrollment.status,
                "enrollment_date": enrollment.enrollment_date,
                "progress_percentage": enrollment.progress_percentage,
                "final_grade": enrollment.final_grade,
            },
            "assignments": [
                {
                    "id": assignment.id,
                    "title": assignment.title,
                    "due_date": assignment.due_date,
                    "max_points": assignment.max_points,
                    "submitted": submission is not None,
                    "grade": submission.grade if submission else None,
                }
                for assignment, submission in assignments
            ],
            "upcoming_sessions": [
                {
                    "id": s.id,
                    "title": s.title,
                    "scheduled_start": s.scheduled_start,
                    "scheduled_end": s.scheduled_end,
                    "meeting_url": s.meeting_url,
                }
                for s in sessions
            ],
            "content_count": content_count,
        }

    async def _active_count(self, course_id: UUID) -> int:
        return await self.count(course_id=course_id, status=EnrollmentStatus.ACTIVE)

    async def update_progress(self, user: User, enrollment_id: UUID, data: Dict[str, Any]) -> Enrollment:
        """Admin or the course's teacher records progress, final grade or completion."""
        enrollment = await self.get(enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment")
        await get_managed_course(self.db, user, enrollment.course_id, action="update progress in")

        updates = {key: value for key, value in data.items() if value is not None}
        if not updates:
            raise BadRequestError("Nothing to update")
        return await self.update(enrollment, updates)
