# eduplatform/services/parent_service.py
from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID
import logging

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from .assignment_service import AssignmentService
from .session_service import SessionService, session_to_dict
from ..core.exceptions import PermissionDeniedError
from ..models.assignment import Assignment, Submission
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import AttendanceStatus, EnrollmentStatus, SessionStatus
from ..models.session import Attendance, ClassSession
from ..models.user import ParentStudentLink, User
from ..utils.time import utcnow

logger = logging.getLogger(__name__)


async def attendance_counts(db: AsyncSession, student_ids: List[UUID]) -> Dict[UUID, Dict[str, int]]:
    """Attendance rows per student grouped by status."""
    counts = {student_id: {status.value: 0 for status in AttendanceStatus} for student_id in student_ids}
    if not student_ids:
        return counts
    stmt = (
        select(Attendance.student_id, Attendance.status, func.count(Attendance.id))
        .where(Attendance.student_id.in_(student_ids))
        .group_by(Attendance.student_id, Attendance.status)
    )
    for student_id, status, count in (await db.execute(stmt)).all():
        counts[student_id][status.value] = count
    return counts


async def children_overview(db: AsyncSession, parent_id: UUID) -> List[Dict[str, Any]]:
    """Linked children with course count, average progress and attendance."""
    stmt = (
        select(
            User,
            ParentStudentLink.relationship_type,
            func.count(Enrollment.id).label("enrolled_courses"),
            func.avg(Enrollment.progress_percentage).label("average_progress"),
        )
        .join(ParentStudentLink, ParentStudentLink.student_id == User.id)
        .outerjoin(Enrollment, and_(
            Enrollment.student_id == User.id,
            Enrollment.status == EnrollmentStatus.ACTIVE
        ))
        .where(ParentStudentLink.parent_id == parent_id)
        .group_by(User.id, ParentStudentLink.relationship_type)
        .order_by(User.name)
    )
    rows = (await db.execute(stmt)).all()
    attendance = await attendance_counts(db, [child.id for child, *_ in rows])
    return [
        {
            "id": child.id,
            "name": child.name,
            "email": child.email,
            "is_active": child.is_active,
            "relationship_type": relationship_type,
            "enrolled_courses": enrolled_courses,
            "average_progress": round(float(average_progress), 2) if average_progress is not None else 0.0,
            "attendance": attendance[child.id],
        }
        for child, relationship_type, enrolled_courses, average_progress in rows
    ]


class ParentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_linked(self, parent_id: UUID, child_id: UUID) -> User:
        stmt = (
            select(User)
            .join(ParentStudentLink, ParentStudentLink.student_id == User.id)
            .where(ParentStudentLink.parent_id == parent_id, User.id == child_id)
        )
        child = (await self.db.execute(stmt)).scalar_one_or_none()
        if not child:
            logger.info(f"Parent {parent_id} denied access to student {child_id}")
            raise PermissionDeniedError("You are not linked to this student")
        return child

    async def list_children(self, parent_id: UUID) -> List[Dict[str, Any]]:
        return await children_overview(self.db, parent_id)

    async def child_progress(self, parent_id: UUID, child_id: UUID) -> Dict[str, Any]:
        child = await self._ensure_linked(parent_id, child_id)

        stmt = (
            select(
                Enrollment,
                Course.title,
                func.avg(Submission.grade * 100.0 / Assignment.max_points).label("average_grade"),
            )
            .join(Course, Course.id == Enrollment.course_id)
            .outerjoin(Assignment, Assignment.course_id == Course.id)
            .outerjoin(Submission, and_(
                Submission.assignment_id == Assignment.id,
                Submission.student_id == child.id,
                Submission.grade.is_not(None)
            ))
            .where(Enrollment.student_id == child.id, Enrollment.status != EnrollmentStatus.DROPPED)
            .group_by(Enrollment.id, Course.title)
            .order_by(Course.title)
        )
        rows = (await self.db.execute(stmt)).all()

        attendance = (await attendance_counts(self.db, [child.id]))[child.id]
        return {
            "student": {"id": child.id, "name": child.name, "email": child.email},
            "courses": [
                {
                    "course_id": enrollment.course_id,
                    "course_title": title,
                    "status": enrollment.status,
                    "progress_percentage": enrollment.progress_percentage,
                    "final_grade": enrollment.final_grade,
                    "average_grade_percentage": round(float(average), 2) if average is not None else None,
                }
                for enrollment, title, average in rows
            ],
            "recent_grades": await AssignmentService(self.db).recent_grades([child.id]),
            "attendance_summary": attendance,
        }

    async def child_attendance(self, parent_id: UUID, child_id: UUID) -> Dict[str, Any]:
        child = await self._ensure_linked(parent_id, child_id)
        return await SessionService(self.db).student_attendance(child.id)

    async def _child_ids(self, parent_id: UUID, child_id: Optional[UUID]) -> List[UUID]:
        if child_id is not None:
            return [(await self._ensure_linked(parent_id, child_id)).id]
        stmt = select(ParentStudentLink.student_id).where(ParentStudentLink.parent_id == parent_id)
        return list((await self.db.execute(stmt)).scalars().all())

    async def schedule(
        self,
        parent_id: UUID,
        child_id: Optional[UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Sessions of the courses the parent's children are actively enrolled in.

        Without a start date only sessions that have not ended are returned.
        Cancelled sessions are left out.
        """
        child_ids = await self._child_ids(parent_id, child_id)
        if not child_ids:
            return []

        conditions = [
            Enrollment.student_id.in_(child_ids),
            Enrollment.status == EnrollmentStatus.ACTIVE,
            ClassSession.status != SessionStatus.CANCELLED,
            ClassSession.scheduled_end >= (start_date or utcnow()),
        ]
        if end_date is not None:
            conditions.append(ClassSession.scheduled_start <= end_date)

        stmt = (
            select(ClassSession, Course.title, User)
            .join(Course, Course.id == ClassSession.course_id)
            .join(Enrollment, Enrollment.course_id == ClassSession.course_id)
            .join(User, User.id == Enrollment.student_id)
            .where(*conditions)
            .order_by(ClassSession.scheduled_start.asc(), User.name)
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            session_to_dict(
                session,
                course={"id": session.course_id, "title": title},
                child={"id": child.id, "name": child.name},
            )
            for session, title, child in rows
        ]

    async def teachers(self, parent_id: UUID, child_id: Optional[UUID] = None) -> List[Dict[str, Any]]:
        """Instructors of the children's active courses with the courses and children they share."""
        child_ids = await self._child_ids(parent_id, child_id)
        if not child_ids:
            return []

        Child = aliased(User)
        stmt = (
            select(User, Course.title, Child.name)
            .join(Course, Course.instructor_id == User.id)
            .join(Enrollment, Enrollment.course_id == Course.id)
            .join(Child, Child.id == Enrollment.student_id)
            .where(
                Enrollment.student_id.in_(child_ids),
                Enrollment.status == EnrollmentStatus.ACTIVE,
                User.is_active == True
            )
            .order_by(User.name, Course.title)
        )

        teachers: Dict[UUID, Dict[str, Any]] = {}
        for teacher, course_title, child_name in (await self.db.execute(stmt)).all():
            entry = teachers.setdefault(teacher.id, {
                "id": teacher.id,
                "name": teacher.name,
                "email": teacher.email,
                "phone": teacher.phone,
                "courses": [],
                "students": [],
            })
            if course_title not in entry["courses"]:
                entry["courses"].append(course_title)
            if child_name not in entry["students"]:
                entry["students"].append(child_name)
        return list(teachers.values())
