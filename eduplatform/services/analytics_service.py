# eduplatform/services/analytics_service.py
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import select, func, case, and_
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.permissions import get_managed_course
from ..models.assignment import Assignment, Submission
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import AttendanceStatus, EnrollmentStatus, UserRole
from ..models.session import Attendance, ClassSession
from ..models.user import User


class AnalyticsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def course_analytics(self, user: User, course_id: UUID) -> Dict[str, Any]:
        course = await get_managed_course(self.db, user, course_id, action="view analytics of")

        enrollment_rows = (await self.db.execute(
            select(Enrollment.status, func.count(Enrollment.id))
            .where(Enrollment.course_id == course.id)
            .group_by(Enrollment.status)
        )).all()
        by_status = {status.value: 0 for status in EnrollmentStatus}
        for status, count in enrollment_rows:
            by_status[status.value] = count

        average_progress = (await self.db.execute(
            select(func.avg(Enrollment.progress_percentage)).where(
                Enrollment.course_id == course.id,
                Enrollment.status != EnrollmentStatus.DROPPED
            )
        )).scalar_one()

        assignment_count = (await self.db.execute(
            select(func.count()).select_from(Assignment).where(Assignment.course_id == course.id)
        )).scalar_one()

        grades = (await self.db.execute(
            select(
                func.count(Submission.id),
                func.count(Submission.grade),
                func.avg(Submission.grade * 100.0 / Assignment.max_points),
            )
            .join(Assignment, Assignment.id == Submission.assignment_id)
            .where(Assignment.course_id == course.id)
        )).one()

        attendance = (await self.db.execute(
            select(
                func.count(Attendance.id),
                func.sum(case(
                    (Attendance.status.in_([AttendanceStatus.PRESENT, AttendanceStatus.LATE]), 1),
                    else_=0
                )),
            )
            .join(ClassSession, ClassSession.id == Attendance.session_id)
            .where(ClassSession.course_id == course.id)
        )).one()
        session_count = (await self.db.execute(
            select(func.count()).select_from(ClassSession).where(ClassSession.course_id == course.id)
        )).scalar_one()

        attendance_total, attended = attendance[0], attendance[1] or 0
        return {
            "course_id": course.id,
            "title": course.title,
            "max_students": course.max_students,
            "enrollments": {**by_status, "total": sum(by_status.values())},
            "average_progress": round(float(average_progress), 2) if average_progress is not None else 0.0,
            "assignments": {
                "total": assignment_count,
                "submissions": grades[0],
                "graded": grades[1],
                "average_grade_percentage": round(float(grades[2]), 2) if grades[2] is not None else None,
            },
            "sessions": {
                "total": session_count,
                "attendance_records": attendance_total,
                "attendance_rate": round(attended / attendance_total * 100, 2) if attendance_total else None,
            },
        }

    async def platform_analytics(self) -> Dict[str, Any]:
        role_rows = (await self.db.execute(
            select(
                User.role,
                func.count(User.id),
                func.sum(case((User.is_active == True, 1), else_=0)),
            ).group_by(User.role)
        )).all()
        users = {role.value: {"total": 0, "active": 0} for role in UserRole}
        for role, total, active in role_rows:
            users[role.value] = {"total": total, "active": active or 0}

        enrollment_rows = (await self.db.execute(
            select(Enrollment.status, func.count(Enrollment.id)).group_by(Enrollment.status)
        )).all()
        enrollments = {status.value: 0 for status in EnrollmentStatus}
        for status, count in enrollment_rows:
            enrollments[status.value] = count

        course_rows = (await self.db.execute(
            select(Course.is_active, func.count(Course.id)).group_by(Course.is_active)
        )).all()
        courses = {"active": 0, "inactive": 0}
        for is_active, count in course_rows:
            courses["active" if is_active else "inactive"] = count

        return {
            "users": users,
            "enrollments": {**enrollments, "total": sum(enrollments.values())},
            "courses": {**courses, "total": courses["active"] + courses["inactive"]},
        }

    def _month(self, column):
        # Calendar month as YYYY-MM on both backends
        if self.db.bind.dialect.name == "postgresql":
            return func.to_char(func.date_trunc("month", column), "YYYY-MM")
        return func.strftime("%Y-%m", column)

    async def user_growth(self) -> List[Dict[str, Any]]:
        """Active accounts grouped by the month they signed up, oldest first."""
        signups = (
            select(self._month(User.created_at).label("month"))
            .where(User.is_active == True)
            .subquery()
        )
        rows = (await self.db.execute(
            select(signups.c.month, func.count())
            .group_by(signups.c.month)
            .order_by(signups.c.month)
        )).all()
        return [{"month": label, "count": count} for label, count in rows]

    async def course_popularity(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Active courses ranked by active enrollments."""
        enrollment_count = func.count(Enrollment.id).label("enrollment_count")
        rows = (await self.db.execute(
            select(Course.id, Course.title, Course.max_students, enrollment_count)
            .outerjoin(Enrollment, and_(
                Enrollment.course_id == Course.id,
                Enrollment.status == EnrollmentStatus.ACTIVE
            ))
            .where(Course.is_active == True)
            .group_by(Course.id, Course.title, Course.max_students)
            .order_by(enrollment_count.desc(), Course.title)
            .limit(limit)
        )).all()
        return [
            {"id": course_id, "title": title, "max_students": max_students, "enrollment_count": count}
            for course_id, title, max_students, count in rows
        ]
