# eduplatform/services/dashboard_service.py
"""Per-role dashboards.

Each panel is an independent query on its own short-lived session and the
panels run concurrently, so the figures are not a consistent snapshot of
one instant.
"""
from typing import Any, Dict, List
from datetime import timedelta
from uuid import UUID
import asyncio
import logging

from sqlalchemy import select, func, case, and_
from sqlalchemy.ext.asyncio import async_sessionmaker

from .assignment_service import AssignmentService, is_past_due
from .parent_service import children_overview
from .session_service import session_to_dict
from ..models.assignment import Assignment, Submission
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import AttendanceStatus, EnrollmentStatus, SessionStatus, UserRole
from ..models.notification import Notification
from ..models.session import Attendance, ClassSession
from ..models.user import ParentStudentLink, User
from ..utils.time import utcnow

logger = logging.getLogger(__name__)


def _avg(value) -> float:
    return round(float(value), 2) if value is not None else 0.0


def _upcoming_sessions_stmt(course_ids, limit: int = 5):
    return (
        select(ClassSession, Course.title)
        .join(Course, Course.id == ClassSession.course_id)
        .where(
            ClassSession.course_id.in_(course_ids),
            ClassSession.scheduled_start >= utcnow(),
            ClassSession.status == SessionStatus.SCHEDULED
        )
        .order_by(ClassSession.scheduled_start.asc())
        .limit(limit)
    )


class DashboardService:
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _run(self, query, *args):
        async with self.session_factory() as db:
            return await query(db, *args)

    # Student

    @staticmethod
    async def _student_courses(db, student_id: UUID) -> List[Dict[str, Any]]:
        session_totals = (
            select(ClassSession.course_id, func.count(ClassSession.id).label("total_sessions"))
            .where(ClassSession.scheduled_start <= utcnow())
            .group_by(ClassSession.course_id)
            .subquery()
        )
        attended = (
            select(ClassSession.course_id, func.count(Attendance.id).label("attended_sessions"))
            .join(Attendance, Attendance.session_id == ClassSession.id)
            .where(
                Attendance.student_id == student_id,
                Attendance.status.in_([AttendanceStatus.PRESENT, AttendanceStatus.LATE])
            )
            .group_by(ClassSession.course_id)
            .subquery()
        )
        stmt = (
            select(Enrollment, Course, session_totals.c.total_sessions, attended.c.attended_sessions)
            .join(Course, Course.id == Enrollment.course_id)
            .outerjoin(session_totals, session_totals.c.course_id == Course.id)
            .outerjoin(attended, attended.c.course_id == Course.id)
            .where(Enrollment.student_id == student_id, Enrollment.status == EnrollmentStatus.ACTIVE)
            .order_by(Course.title)
        )
        rows = (await db.execute(stmt)).all()
        return [
            {
                "course_id": course.id,
                "title": course.title,
                "progress_percentage": enrollment.progress_percentage,
                "attended_sessions": attended_sessions or 0,
                "total_sessions": total_sessions or 0,
            }
            for enrollment, course, total_sessions, attended_sessions in rows
        ]

    @staticmethod
    async def _student_upcoming(db, student_id: UUID) -> List[Dict[str, Any]]:
        course_ids = select(Enrollment.course_id).where(
            Enrollment.student_id == student_id,
            Enrollment.status == EnrollmentStatus.ACTIVE
        )
        rows = (await db.execute(_upcoming_sessions_stmt(course_ids))).all()
        return [session_to_dict(session, course_title=title) for session, title in rows]

    @staticmethod
    async def _student_assignments(db, student_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(Assignment, Course.title, Submission)
            .join(Course, Course.id == Assignment.course_id)
            .join(Enrollment, and_(
                Enrollment.course_id == Assignment.course_id,
                Enrollment.student_id == student_id,
                Enrollment.status == EnrollmentStatus.ACTIVE
            ))
            .outerjoin(Submission, and_(
                Submission.assignment_id == Assignment.id,
                Submission.student_id == student_id
            ))
            .where(Assignment.is_active == True)
            .order_by(Assignment.created_at.desc())
            .limit(10)
        )
        rows = (await db.execute(stmt)).all()
        return [
            {
                "id": assignment.id,
                "title": assignment.title,
                "course_title": course_title,
                "due_date": assignment.due_date,
                "max_points": assignment.max_points,
                "is_past_due": is_past_due(assignment),
                "submission_status": (
                    "graded" if submission and submission.grade is not None
                    else "submitted" if submission
                    else "not_submitted"
                ),
                "grade": submission.grade if submission else None,
            }
            for assignment, course_title, submission in rows
        ]

    @staticmethod
    async def _notifications(db, user_id: UUID) -> Dict[str, Any]:
        latest = (await db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(5)
        )).scalars().all()
        unread = (await db.execute(
            select(func.count()).select_from(Notification).where(
                Notification.user_id == user_id,
                Notification.is_read == False
            )
        )).scalar_one()
        return {
            "unread_count": unread,
            "items": [
                {
                    "id": n.id,
                    "title": n.title,
                    "content": n.content,
                    "notification_type": n.notification_type,
                    "is_read": n.is_read,
                    "created_at": n.created_at,
                }
                for n in latest
            ],
        }

    async def student_dashboard(self, student: User) -> Dict[str, Any]:
        courses, upcoming, assignments, notifications = await asyncio.gather(
            self._run(self._student_courses, student.id),
            self._run(self._student_upcoming, student.id),
            self._run(self._student_assignments, student.id),
            self._run(self._notifications, student.id),
        )
        return {
            "user": {"id": student.id, "name": student.name, "role": student.role},
            "stats": {
                "enrolled_courses": len(courses),
                "pending_assignments": sum(1 for a in assignments if a["submission_status"] == "not_submitted"),
                "upcoming_sessions": len(upcoming),
                "unread_notifications": notifications["unread_count"],
            },
            "courses": courses,
            "upcoming_sessions": upcoming,
            "recent_assignments": assignments,
            "notifications": notifications["items"],
        }

    # Teacher

    @staticmethod
    async def _teacher_courses(db, teacher_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(
                Course,
                func.count(Enrollment.id).label("enrolled"),
                func.avg(Enrollment.progress_percentage).label("average_progress"),
            )
            .outerjoin(Enrollment, and_(
                Enrollment.course_id == Course.id,
                Enrollment.status == EnrollmentStatus.ACTIVE
            ))
            .where(Course.instructor_id == teacher_id, Course.is_active == True)
            .group_by(Course.id)
            .order_by(Course.title)
        )
        rows = (await db.execute(stmt)).all()
        return [
            {
                "course_id": course.id,
                "title": course.title,
                "max_students": course.max_students,
                "enrolled_students": enrolled,
                "average_progress": _avg(average_progress),
            }
            for course, enrolled, average_progress in rows
        ]

    @staticmethod
    async def _teacher_upcoming(db, teacher_id: UUID) -> List[Dict[str, Any]]:
        course_ids = select(Course.id).where(Course.instructor_id == teacher_id)
        rows = (await db.execute(_upcoming_sessions_stmt(course_ids))).all()
        return [session_to_dict(session, course_title=title) for session, title in rows]

    @staticmethod
    def _submissions_stmt(teacher_id: UUID):
        return (
            select(Submission, Assignment.title, Course.title, User.name)
            .join(Assignment, Assignment.id == Submission.assignment_id)
            .join(Course, Course.id == Assignment.course_id)
            .join(User, User.id == Submission.student_id)
            .where(Course.instructor_id == teacher_id)
        )

    @classmethod
    async def _pending_grading(cls, db, teacher_id: UUID) -> Dict[str, Any]:
        base = cls._submissions_stmt(teacher_id).where(Submission.grade.is_(None))
        total = (await db.execute(
            select(func.count(Submission.id))
            .join(Assignment, Assignment.id == Submission.assignment_id)
            .join(Course, Course.id == Assignment.course_id)
            .where(Course.instructor_id == teacher_id, Submission.grade.is_(None))
        )).scalar_one()
        rows = (await db.execute(base.order_by(Submission.submitted_at.asc()).limit(10))).all()
        return {
            "count": total,
            "items": [
                {
                    "submission_id": submission.id,
                    "assignment_title": assignment_title,
                    "course_title": course_title,
                    "student_name": student_name,
                    "submitted_at": submission.submitted_at,
                }
                for submission, assignment_title, course_title, student_name in rows
            ],
        }

    @classmethod
    async def _recent_activity(cls, db, teacher_id: UUID) -> List[Dict[str, Any]]:
        stmt = cls._submissions_stmt(teacher_id).order_by(Submission.submitted_at.desc()).limit(10)
        rows = (await db.execute(stmt)).all()
        return [
            {
                "type": "submission",
                "student_name": student_name,
                "assignment_title": assignment_title,
                "course_title": course_title,
                "at": submission.submitted_at,
            }
            for submission, assignment_title, course_title, student_name in rows
        ]

    async def teacher_dashboard(self, teacher: User) -> Dict[str, Any]:
        courses, upcoming, pending, activity = await asyncio.gather(
            self._run(self._teacher_courses, teacher.id),
            self._run(self._teacher_upcoming, teacher.id),
            self._run(self._pending_grading, teacher.id),
            self._run(self._recent_activity, teacher.id),
        )
        return {
            "user": {"id": teacher.id, "name": teacher.name, "role": teacher.role},
            "stats": {
                "active_courses": len(courses),
                "total_students": sum(c["enrolled_students"] for c in courses),
                "pending_grading": pending["count"],
                "upcoming_sessions": len(upcoming),
            },
            "courses": courses,
            "upcoming_sessions": upcoming,
            "pending_submissions": pending["items"],
            "recent_activity": activity,
        }

    # Parent

    @staticmethod
    async def _parent_upcoming(db, parent_id: UUID) -> List[Dict[str, Any]]:
        children = select(ParentStudentLink.student_id).where(ParentStudentLink.parent_id == parent_id)
        course_ids = select(Enrollment.course_id).where(
            Enrollment.student_id.in_(children),
            Enrollment.status == EnrollmentStatus.ACTIVE
        )
        rows = (await db.execute(_upcoming_sessions_stmt(course_ids))).all()
        return [session_to_dict(session, course_title=title) for session, title in rows]

    @staticmethod
    async def _parent_recent_grades(db, parent_id: UUID) -> List[Dict[str, Any]]:
        children = (await db.execute(
            select(ParentStudentLink.student_id).where(ParentStudentLink.parent_id == parent_id)
        )).scalars().all()
        return await AssignmentService(db).recent_grades(list(children))

    async def parent_dashboard(self, parent: User) -> Dict[str, Any]:
        children, upcoming, grades = await asyncio.gather(
            self._run(children_overview, parent.id),
            self._run(self._parent_upcoming, parent.id),
            self._run(self._parent_recent_grades, parent.id),
        )
        return {
            "user": {"id": parent.id, "name": parent.name, "role": parent.role},
            "stats": {
                "children": len(children),
                "upcoming_sessions": len(upcoming),
            },
            "children": children,
            "upcoming_sessions": upcoming,
            "recent_grades": grades,
        }

    # Admin

    @staticmethod
    async def _user_counts(db) -> Dict[str, int]:
        rows = (await db.execute(
            select(User.role, func.count(User.id)).where(User.is_active == True).group_by(User.role)
        )).all()
        counts = {role.value: 0 for role in UserRole}
        for role, count in rows:
            counts[role.value] = count
        return counts

    @staticmethod
    async def _platform_counts(db) -> Dict[str, int]:
        active_courses = (await db.execute(
            select(func.count()).select_from(Course).where(Course.is_active == True)
        )).scalar_one()
        active_enrollments = (await db.execute(
            select(func.count()).select_from(Enrollment).where(Enrollment.status == EnrollmentStatus.ACTIVE)
        )).scalar_one()
        return {"active_courses": active_courses, "active_enrollments": active_enrollments}

    @staticmethod
    async def _recent_registrations(db) -> Dict[str, Any]:
        since = utcnow() - timedelta(days=30)
        rows = (await db.execute(
            select(User).where(User.created_at >= since).order_by(User.created_at.desc())
        )).scalars().all()
        return {
            "count": len(rows),
            "items": [
                {"id": u.id, "name": u.name, "email": u.email, "role": u.role, "created_at": u.created_at}
                for u in rows[:10]
            ],
        }

    @staticmethod
    async def _course_enrollment_stats(db) -> List[Dict[str, Any]]:
        stmt = (
            select(
                Course.id,
                Course.title,
                Course.max_students,
                func.sum(case((Enrollment.status == EnrollmentStatus.ACTIVE, 1), else_=0)).label("active"),
                func.count(Enrollment.id).label("total"),
                func.avg(Enrollment.progress_percentage).label("average_progress"),
            )
            .outerjoin(Enrollment, Enrollment.course_id == Course.id)
            .where(Course.is_active == True)
            .group_by(Course.id, Course.title, Course.max_students)
            .order_by(Course.title)
        )
        rows = (await db.execute(stmt)).all()
        return [
            {
                "course_id": row.id,
                "title": row.title,
                "max_students": row.max_students,
                "active_enrollments": row.active or 0,
                "total_enrollments": row.total,
                "average_progress": _avg(row.average_progress),
            }
            for row in rows
        ]

    async def admin_dashboard(self, admin: User) -> Dict[str, Any]:
        users, platform, registrations, courses = await asyncio.gather(
            self._run(self._user_counts),
            self._run(self._platform_counts),
            self._run(self._recent_registrations),
            self._run(self._course_enrollment_stats),
        )
        return {
            "user": {"id": admin.id, "name": admin.name, "role": admin.role},
            "stats": {
                "total_students": users[UserRole.STUDENT.value],
                "total_teachers": users[UserRole.TEACHER.value],
                "total_parents": users[UserRole.PARENT.value],
                "total_admins": users[UserRole.ADMIN.value],
                **platform,
                "recent_registrations": registrations["count"],
            },
            "recent_users": registrations["items"],
            "course_stats": courses,
        }
