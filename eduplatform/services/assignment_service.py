# eduplatform/services/assignment_service.py
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .notification_service import NotificationService
from ..core.exceptions import BadRequestError, NotFoundError
from ..core.permissions import ensure_can_view_course, get_managed_course, linked_student_ids
from ..models.assignment import Assignment, Submission
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import EnrollmentStatus, NotificationType, UserRole
from ..models.user import User
from ..utils.pagination import PaginationParams
from ..utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)

STUDENT_ASSIGNMENT_FILTERS = ("submitted", "not_submitted", "graded", "overdue")


def is_past_due(assignment: Assignment, at=None) -> bool:
    if assignment.due_date is None:
        return False
    return (at or utcnow()) > ensure_utc(assignment.due_date)


def grade_percentage(grade, max_points) -> Optional[float]:
    if grade is None or not max_points:
        return None
    return round(float(grade) / float(max_points) * 100, 2)


class AssignmentService(BaseService[Assignment]):
    def __init__(self, db: AsyncSession):
        super().__init__(Assignment, db)

    async def get_or_404(self, assignment_id: UUID) -> Assignment:
        assignment = await self.get(assignment_id)
        if not assignment:
            raise NotFoundError("Assignment")
        return assignment

    async def _visible_course_ids(self, user: User):
        """Subquery of course ids whose assignments the user may list; None means all."""
        if user.role == UserRole.ADMIN:
            return None
        if user.role == UserRole.TEACHER:
            return select(Course.id).where(Course.instructor_id == user.id)
        if user.role == UserRole.STUDENT:
            student_ids = [user.id]
        else:
            student_ids = await linked_student_ids(self.db, user.id)
        return select(Enrollment.course_id).where(
            Enrollment.student_id.in_(student_ids),
            Enrollment.status == EnrollmentStatus.ACTIVE
        )

    async def list_assignments(self, user: User, params: PaginationParams, course_id: Optional[UUID] = None) -> Dict[str, Any]:
        conditions = []
        visible = await self._visible_course_ids(user)
        if visible is not None:
            conditions.append(Assignment.course_id.in_(visible))
            # Students and parents never see withdrawn assignments
            if user.role in (UserRole.STUDENT, UserRole.PARENT):
                conditions.append(Assignment.is_active == True)
        if course_id:
            conditions.append(Assignment.course_id == course_id)

        total = (await self.db.execute(
            select(func.count()).select_from(Assignment).where(*conditions)
        )).scalar_one()
        stmt = (
            select(Assignment)
            .where(*conditions)
            .order_by(Assignment.due_date.desc(), Assignment.created_at.desc())
            .offset(params.offset)
            .limit(params.size)
        )
        items = list((await self.db.execute(stmt)).scalars().all())
        return {"items": items, "total": total}

    async def get_for_user(self, user: User, assignment_id: UUID) -> Assignment:
        assignment = await self.get_or_404(assignment_id)
        course = await self.db.get(Course, assignment.course_id)
        await ensure_can_view_course(self.db, user, course)
        return assignment

    async def create_assignment(self, user: User, data: Dict[str, Any]) -> Assignment:
        course = await get_managed_course(self.db, user, data["course_id"], action="add assignments to")
        if not course.is_active:
            raise BadRequestError("Cannot add assignments to an inactive course")
        assignment = await self.create({**data, "created_by_id": user.id})
        logger.info(f"Assignment {assignment.id} created in course {course.id}")
        return assignment

    async def update_assignment(self, user: User, assignment_id: UUID, data: Dict[str, Any]) -> Assignment:
        assignment = await self.get_or_404(assignment_id)
        await get_managed_course(self.db, user, assignment.course_id, action="update assignments of")
        return await self.update(assignment, data)

    async def delete_assignment(self, user: User, assignment_id: UUID) -> None:
        assignment = await self.get_or_404(assignment_id)
        await get_managed_course(self.db, user, assignment.course_id, action="delete assignments of")
        await self.hard_delete(assignment)
        logger.info(f"Assignment {assignment_id} deleted by {user.id}")

    async def submit(self, student: User, assignment_id: UUID, data: Dict[str, Any]) -> Tuple[Submission, bool, bool]:
        """
        Create or replace the student's submission.

        Late work is accepted and only flagged.

        Returns:
            (submission, created, is_past_due)
        """
        stmt = (
            select(Assignment)
            .join(Enrollment, and_(
                Enrollment.course_id == Assignment.course_id,
                Enrollment.student_id == student.id,
                Enrollment.status == EnrollmentStatus.ACTIVE
            ))
            .where(Assignment.id == assignment_id, Assignment.is_active == True)
        )
        assignment = (await self.db.execute(stmt)).scalar_one_or_none()
        if not assignment:
            raise NotFoundError("Assignment", "Assignment not found or you are not enrolled in this course")

        now = utcnow()
        existing = (await self.db.execute(
            select(Submission).where(
                Submission.assignment_id == assignment.id,
                Submission.student_id == student.id
            )
        )).scalar_one_or_none()

        if existing:
            existing.submission_text = data.get("submission_text")
            existing.file_url = data.get("file_url")
            existing.submitted_at = now
            submission = existing
            created = False
        else:
            submission = Submission(
                assignment_id=assignment.id,
                student_id=student.id,
                submission_text=data.get("submission_text"),
                file_url=data.get("file_url"),
                submitted_at=now
            )
            self.db.add(submission)
            created = True

        await self.db.commit()
        await self.db.refresh(submission)

        past_due = is_past_due(assignment, now)
        logger.info(
            f"Student {student.id} {'submitted' if created else 'resubmitted'} assignment {assignment.id}"
            f"{' after the due date' if past_due else ''}"
        )
        return submission, created, past_due

    async def list_submissions(self, user: User, assignment_id: UUID) -> List[Dict[str, Any]]:
        assignment = await self.get_or_404(assignment_id)
        await get_managed_course(self.db, user, assignment.course_id, action="view submissions of")
        stmt = (
            select(Submission, User)
            .join(User, User.id == Submission.student_id)
            .where(Submission.assignment_id == assignment.id)
            .order_by(Submission.submitted_at.desc())
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "id": submission.id,
                "student": {"id": student.id, "name": student.name, "email": student.email},
                "submission_text": submission.submission_text,
                "file_url": submission.file_url,
                "submitted_at": submission.submitted_at,
                "is_late": is_past_due(assignment, ensure_utc(submission.submitted_at)),
                "grade": submission.grade,
                "feedback": submission.feedback,
                "graded_at": submission.graded_at,
            }
            for submission, student in rows
        ]

    async def grade(self, user: User, submission_id: UUID, grade: float, feedback: Optional[str] = None) -> Submission:
        submission = await self.db.get(Submission, submission_id)
        if not submission:
            raise NotFoundError("Submission")
        assignment = await self.get_or_404(submission.assignment_id)
        await get_managed_course(self.db, user, assignment.course_id, action="grade submissions of")

        if grade < 0 or grade > float(assignment.max_points):
            raise BadRequestError(f"Grade must be between 0 and {float(assignment.max_points):g}")

        submission.grade = grade
        submission.feedback = feedback
        submission.graded_at = utcnow()
        submission.graded_by_id = user.id

        await NotificationService(self.db).notify(
            submission.student_id,
            "Assignment graded",
            f"Your submission for {assignment.title} was graded: {grade:g}/{float(assignment.max_points):g}",
            NotificationType.INFO,
            action_url=f"/student/assignments/{assignment.id}"
        )
        await self.db.commit()
        await self.db.refresh(submission)
        logger.info(f"Submission {submission.id} graded by {user.id}")
        return submission

    async def list_for_student(self, student_id: UUID, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Assignments of the student's active courses with their submission state."""
        if status is not None and status not in STUDENT_ASSIGNMENT_FILTERS:
            raise BadRequestError(f"status must be one of: {', '.join(STUDENT_ASSIGNMENT_FILTERS)}")

        stmt = (
            select(Assignment, Course, Submission)
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
            .order_by(Assignment.due_date.asc())
        )
        now = utcnow()
        if status == "submitted":
            stmt = stmt.where(Submission.id.is_not(None))
        elif status == "not_submitted":
            stmt = stmt.where(Submission.id.is_(None))
        elif status == "graded":
            stmt = stmt.where(Submission.grade.is_not(None))
        elif status == "overdue":
            stmt = stmt.where(Submission.id.is_(None), Assignment.due_date < now)

        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "id": assignment.id,
                "title": assignment.title,
                "description": assignment.description,
                "assignment_type": assignment.assignment_type,
                "due_date": assignment.due_date,
                "max_points": assignment.max_points,
                "is_past_due": is_past_due(assignment, now),
                "course": {"id": course.id, "title": course.title},
                "submission": {
                    "id": submission.id,
                    "submitted_at": submission.submitted_at,
                    "grade": submission.grade,
                    "feedback": submission.feedback,
                } if submission else None,
            }
            for assignment, course, submission in rows
        ]

    async def grade_statistics(self, student_id: UUID) -> List[Dict[str, Any]]:
        """Per-course totals and average percentage of graded work."""
        stmt = (
            select(
                Course.id,
                Course.title,
                func.count(Assignment.id).label("total_assignments"),
                func.count(Submission.grade).label("graded_assignments"),
                func.avg(Submission.grade * 100.0 / Assignment.max_points).label("average_percentage"),
            )
            .select_from(Enrollment)
            .join(Course, Course.id == Enrollment.course_id)
            .outerjoin(Assignment, and_(Assignment.course_id == Course.id, Assignment.is_active == True))
            .outerjoin(Submission, and_(
                Submission.assignment_id == Assignment.id,
                Submission.student_id == student_id
            ))
            .where(Enrollment.student_id == student_id, Enrollment.status != EnrollmentStatus.DROPPED)
            .group_by(Course.id, Course.title)
            .order_by(Course.title)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "course_id": row.id,
                "course_title": row.title,
                "total_assignments": row.total_assignments,
                "graded_assignments": row.graded_assignments,
                "average_percentage": round(float(row.average_percentage), 2) if row.average_percentage is not None else None,
            }
            for row in rows
        ]

    async def recent_grades(self, student_ids: List[UUID], limit: int = 10) -> List[Dict[str, Any]]:
        if not student_ids:
            return []
        stmt = (
            select(Submission, Assignment, Course)
            .join(Assignment, Assignment.id == Submission.assignment_id)
            .join(Course, Course.id == Assignment.course_id)
            .where(Submission.student_id.in_(student_ids), Submission.grade.is_not(None))
            .order_by(Submission.graded_at.desc())
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "student_id": submission.student_id,
                "assignment_id": assignment.id,
                "assignment_title": assignment.title,
                "course_title": course.title,
                "grade": submission.grade,
                "max_points": assignment.max_points,
                "percentage": grade_percentage(submission.grade, assignment.max_points),
                "feedback": submission.feedback,
                "graded_at": submission.graded_at,
            }
            for submission, assignment, course in rows
        ]
