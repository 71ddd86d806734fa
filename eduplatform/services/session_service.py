# eduplatform/services/session_service.py
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timedelta
from uuid import UUID
import logging

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import BadRequestError, NotFoundError
from ..core.permissions import ensure_can_view_course, get_managed_course, linked_student_ids
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import AttendanceStatus, EnrollmentStatus, SessionStatus, UserRole
from ..models.session import Attendance, ClassSession
from ..models.user import User
from ..utils.pagination import PaginationParams
from ..utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)

ATTENDANCE_FIELDS = ("status", "join_time", "leave_time", "notes")


def session_to_dict(session: ClassSession, **extra) -> Dict[str, Any]:
    data = {
        "id": session.id,
        "course_id": session.course_id,
        "title": session.title,
        "description": session.description,
        "scheduled_start": session.scheduled_start,
        "scheduled_end": session.scheduled_end,
        "meeting_id": session.meeting_id,
        "meeting_url": session.meeting_url,
        "status": session.status,
        "created_at": session.created_at,
    }
    data.update(extra)
    return data


def attendance_to_dict(record: Attendance, student: Optional[User] = None) -> Dict[str, Any]:
    data = {
        "id": record.id,
        "session_id": record.session_id,
        "student_id": record.student_id,
        "status": record.status,
        "join_time": record.join_time,
        "leave_time": record.leave_time,
        "notes": record.notes,
    }
    if student is not None:
        data["student_name"] = student.name
    return data


class SessionService(BaseService[ClassSession]):
    def __init__(self, db: AsyncSession):
        super().__init__(ClassSession, db)

    async def get_or_404(self, session_id: UUID) -> ClassSession:
        session = await self.get(session_id)
        if not session:
            raise NotFoundError("Session")
        return session

    async def _visible_course_ids(self, user: User):
        if user.role == UserRole.ADMIN:
            return None
        if user.role == UserRole.TEACHER:
            return select(Course.id).where(Course.instructor_id == user.id)
        student_ids = [user.id] if user.role == UserRole.STUDENT else await linked_student_ids(self.db, user.id)
        return select(Enrollment.course_id).where(
            Enrollment.student_id.in_(student_ids),
            Enrollment.status == EnrollmentStatus.ACTIVE
        )

    async def list_sessions(
        self,
        user: User,
        params: PaginationParams,
        course_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        status: Optional[SessionStatus] = None
    ) -> Dict[str, Any]:
        """Role-scoped session list with attendance and present counts."""
        conditions = []
        visible = await self._visible_course_ids(user)
        if visible is not None:
            conditions.append(ClassSession.course_id.in_(visible))
        if course_id:
            conditions.append(ClassSession.course_id == course_id)
        if date_from:
            conditions.append(ClassSession.scheduled_start >= ensure_utc(date_from))
        if date_to:
            conditions.append(ClassSession.scheduled_start <= ensure_utc(date_to))
        if status:
            conditions.append(ClassSession.status == status)

        total = (await self.db.execute(
            select(func.count()).select_from(ClassSession).where(*conditions)
        )).scalar_one()

        counts = (
            select(
                Attendance.session_id.label("session_id"),
                func.count(Attendance.id).label("attendance_count"),
                func.sum(case((Attendance.status == AttendanceStatus.PRESENT, 1), else_=0)).label("present_count"),
            )
            .group_by(Attendance.session_id)
            .subquery()
        )
        stmt = (
            select(ClassSession, Course.title, counts.c.attendance_count, counts.c.present_count)
            .join(Course, Course.id == ClassSession.course_id)
            .outerjoin(counts, counts.c.session_id == ClassSession.id)
            .where(*conditions)
            .order_by(ClassSession.scheduled_start.asc())
            .offset(params.offset)
            .limit(params.size)
        )
        rows = (await self.db.execute(stmt)).all()
        items = [
            session_to_dict(
                session,
                course_title=course_title,
                attendance_count=attendance_count or 0,
                present_count=present_count or 0,
            )
            for session, course_title, attendance_count, present_count in rows
        ]
        return {"items": items, "total": total}

    async def get_session_detail(self, user: User, session_id: UUID) -> Dict[str, Any]:
        session = await self.get_or_404(session_id)
        course = await self.db.get(Course, session.course_id)
        await ensure_can_view_course(self.db, user, course)

        records = (await self.db.execute(
            select(Attendance, User)
            .join(User, User.id == Attendance.student_id)
            .where(Attendance.session_id == session.id)
            .order_by(User.name)
        )).all()

        # Enrolled students with no attendance row yet
        marked = select(Attendance.student_id).where(Attendance.session_id == session.id)
        unmarked = (await self.db.execute(
            select(User)
            .join(Enrollment, Enrollment.student_id == User.id)
            .where(
                Enrollment.course_id == session.course_id,
                Enrollment.status == EnrollmentStatus.ACTIVE,
                User.id.not_in(marked)
            )
            .order_by(User.name)
        )).scalars().all()

        return session_to_dict(
            session,
            course_title=course.title,
            attendance=[attendance_to_dict(record, student) for record, student in records],
            unmarked_students=[{"id": s.id, "name": s.name, "email": s.email} for s in unmarked],
        )

    async def create_session(self, user: User, data: Dict[str, Any]) -> ClassSession:
        course = await get_managed_course(self.db, user, data["course_id"], action="schedule sessions for")
        if not course.is_active:
            raise BadRequestError("Cannot schedule sessions for an inactive course")
        session = await self.create(data)
        logger.info(f"Session {session.id} scheduled for course {course.id}")
        return session

    async def update_session(self, user: User, session_id: UUID, data: Dict[str, Any]) -> ClassSession:
        session = await self.get_or_404(session_id)
        await get_managed_course(self.db, user, session.course_id, action="update sessions of")

        start = data.get("scheduled_start") or session.scheduled_start
        end = data.get("scheduled_end") or session.scheduled_end
        if ensure_utc(start) >= ensure_utc(end):
            raise BadRequestError("End time must be after start time")
        return await self.update(session, data)

    async def delete_session(self, user: User, session_id: UUID) -> None:
        session = await self.get_or_404(session_id)
        await get_managed_course(self.db, user, session.course_id, action="delete sessions of")

        recorded = (await self.db.execute(
            select(func.count()).select_from(Attendance).where(Attendance.session_id == session.id)
        )).scalar_one()
        if recorded:
            raise BadRequestError("Cannot delete a session that has attendance records")
        await self.hard_delete(session)
        logger.info(f"Session {session_id} deleted by {user.id}")

    async def _active_student_ids(self, course_id: UUID, student_ids) -> set:
        stmt = select(Enrollment.student_id).where(
            Enrollment.course_id == course_id,
            Enrollment.status == EnrollmentStatus.ACTIVE,
            Enrollment.student_id.in_(student_ids)
        )
        return set((await self.db.execute(stmt)).scalars().all())

    async def _existing_attendance(self, session_id: UUID, student_ids) -> Dict[UUID, Attendance]:
        stmt = select(Attendance).where(
            Attendance.session_id == session_id,
            Attendance.student_id.in_(student_ids)
        )
        return {record.student_id: record for record in (await self.db.execute(stmt)).scalars().all()}

    def _apply_record(self, session_id: UUID, existing: Optional[Attendance], record: Dict[str, Any]) -> Attendance:
        if existing:
            for field in ATTENDANCE_FIELDS:
                setattr(existing, field, record.get(field))
            return existing
        attendance = Attendance(session_id=session_id, student_id=record["student_id"],
                                **{field: record.get(field) for field in ATTENDANCE_FIELDS})
        self.db.add(attendance)
        return attendance

    async def mark_attendance(self, user: User, session_id: UUID, record: Dict[str, Any]) -> Tuple[Attendance, bool]:
        """Upsert one student's attendance. Returns (record, created)."""
        session = await self.get_or_404(session_id)
        await get_managed_course(self.db, user, session.course_id, action="take attendance for")

        student_id = record["student_id"]
        if student_id not in await self._active_student_ids(session.course_id, [student_id]):
            raise BadRequestError("Student is not enrolled in this course")

        existing = (await self._existing_attendance(session.id, [student_id])).get(student_id)
        attendance = self._apply_record(session.id, existing, record)
        await self.db.commit()
        await self.db.refresh(attendance)
        return attendance, existing is None

    async def bulk_mark_attendance(self, user: User, session_id: UUID, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Upsert attendance for many students in a single transaction.

        Students without an active enrollment are reported in ``errors`` and
        skipped. When a student appears more than once the last record wins.
        Any database failure rolls back the whole batch.
        """
        session = await self.get_or_404(session_id)
        await get_managed_course(self.db, user, session.course_id, action="take attendance for")

        latest: Dict[UUID, Dict[str, Any]] = {}
        for record in records:
            latest.pop(record["student_id"], None)
            latest[record["student_id"]] = record

        enrolled = await self._active_student_ids(session.course_id, list(latest))
        existing = await self._existing_attendance(session.id, list(enrolled))

        results = []
        errors = []
        try:
            for student_id, record in latest.items():
                if student_id not in enrolled:
                    errors.append({"student_id": student_id, "error": "Student is not enrolled in this course"})
                    continue
                attendance = self._apply_record(session.id, existing.get(student_id), record)
                results.append((attendance, student_id in existing))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception(f"Bulk attendance for session {session.id} rolled back")
            raise

        logger.info(
            f"Bulk attendance for session {session.id}: {len(results)} saved, {len(errors)} skipped"
        )
        return {
            "message": f"Attendance updated for {len(results)} students",
            "successful": len(results),
            "failed": len(errors),
            "results": [
                {**attendance_to_dict(attendance), "action": "updated" if updated else "created"}
                for attendance, updated in results
            ],
            "errors": errors,
        }

    async def student_schedule(self, student_id: UUID, days_ahead: Optional[int] = None, limit: int = 50) -> List[Dict[str, Any]]:
        """Upcoming sessions of the student's active courses."""
        conditions = [
            Enrollment.student_id == student_id,
            Enrollment.status == EnrollmentStatus.ACTIVE,
            ClassSession.scheduled_end >= utcnow(),
            ClassSession.status != SessionStatus.CANCELLED,
        ]
        if days_ahead is not None:
            conditions.append(ClassSession.scheduled_start <= utcnow() + timedelta(days=days_ahead))

        stmt = (
            select(ClassSession, Course.title)
            .join(Course, Course.id == ClassSession.course_id)
            .join(Enrollment, Enrollment.course_id == ClassSession.course_id)
            .where(*conditions)
            .order_by(ClassSession.scheduled_start.asc())
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).all()
        return [session_to_dict(session, course_title=title) for session, title in rows]

    async def student_attendance(self, student_id: UUID, course_id: Optional[UUID] = None) -> Dict[str, Any]:
        """Attendance history plus a per-status summary."""
        stmt = (
            select(Attendance, ClassSession, Course.title)
            .join(ClassSession, ClassSession.id == Attendance.session_id)
            .join(Course, Course.id == ClassSession.course_id)
            .where(Attendance.student_id == student_id)
            .order_by(ClassSession.scheduled_start.desc())
        )
        if course_id:
            stmt = stmt.where(ClassSession.course_id == course_id)
        rows = (await self.db.execute(stmt)).all()

        summary = {status.value: 0 for status in AttendanceStatus}
        records = []
        for attendance, session, course_title in rows:
            summary[attendance.status.value] += 1
            records.append({
                **attendance_to_dict(attendance),
                "session_title": session.title,
                "scheduled_start": session.scheduled_start,
                "course_id": session.course_id,
                "course_title": course_title,
            })

        total = len(records)
        attended = summary[AttendanceStatus.PRESENT.value] + summary[AttendanceStatus.LATE.value]
        return {
            "records": records,
            "summary": {
                **summary,
                "total": total,
                "attendance_rate": round(attended / total * 100, 2) if total else None,
            },
        }
