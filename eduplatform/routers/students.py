# eduplatform/routers/students.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_student
from ..models.enums import EnrollmentStatus
from ..models.user import User
from ..schemas.assignment import SubmissionCreate, SubmissionOut
from ..schemas.enrollment import EnrollmentOut
from ..services.assignment_service import AssignmentService
from ..services.enrollment_service import EnrollmentService
from ..services.session_service import SessionService
from ..utils.pagination import PaginationParams, paginated_response, pagination_params

router = APIRouter(prefix="/students", tags=["Student Portal"])


@router.get("/courses")
async def my_courses(
    status_filter: Optional[EnrollmentStatus] = Query(None, alias="status"),
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Courses the student is enrolled in; dropped ones only when asked for"""
    service = EnrollmentService(db)
    courses = await service.list_enrolled_courses(student.id, status_filter)
    return {"courses": courses, "total": len(courses)}


@router.get("/available-courses")
async def available_courses(
    search: Optional[str] = Query(None, max_length=100),
    price_max: Optional[float] = Query(None, ge=0),
    pagination: PaginationParams = Depends(pagination_params),
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    service = EnrollmentService(db)
    page = await service.list_available_courses(student.id, pagination, search=search, price_max=price_max)
    return paginated_response(page["items"], pagination.page, pagination.size, page["total"])


@router.post("/enroll/{course_id}", status_code=status.HTTP_201_CREATED)
async def enroll(
    course_id: UUID,
    response: Response,
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Enroll in a course; re-enrolling after a drop reuses the old enrollment"""
    service = EnrollmentService(db)
    enrollment, created = await service.enroll(student, course_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return {
        "message": "Successfully enrolled in course" if created else "Enrollment reactivated",
        "enrollment": EnrollmentOut.model_validate(enrollment),
    }


@router.post("/courses/{course_id}/drop")
async def drop_course(
    course_id: UUID,
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    service = EnrollmentService(db)
    enrollment = await service.drop(student.id, course_id)
    return {"message": "Course dropped", "enrollment": EnrollmentOut.model_validate(enrollment)}


@router.get("/courses/{course_id}")
async def course_details(
    course_id: UUID,
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    service = EnrollmentService(db)
    return await service.get_course_details(student.id, course_id)


@router.get("/assignments")
async def my_assignments(
    status_filter: Optional[str] = Query(None, alias="status", description="submitted, not_submitted, graded or overdue"),
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    assignments = await service.list_for_student(student.id, status_filter)
    return {"assignments": assignments, "total": len(assignments)}


@router.post("/assignments/{assignment_id}/submit", status_code=status.HTTP_201_CREATED)
async def submit_assignment(
    assignment_id: UUID,
    payload: SubmissionCreate,
    response: Response,
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    submission, created, past_due = await service.submit(student, assignment_id, payload.model_dump())
    if not created:
        response.status_code = status.HTTP_200_OK
    return {
        "message": "Assignment submitted successfully" if created else "Submission updated successfully",
        "submission": SubmissionOut.model_validate(submission),
        "is_past_due": past_due,
    }


@router.get("/grades")
async def my_grades(
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    return {
        "courses": await service.grade_statistics(student.id),
        "recent_grades": await service.recent_grades([student.id]),
    }


@router.get("/schedule")
async def my_schedule(
    days_ahead: Optional[int] = Query(None, ge=1, le=365),
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    service = SessionService(db)
    sessions = await service.student_schedule(student.id, days_ahead)
    return {"sessions": sessions, "total": len(sessions)}


@router.get("/attendance")
async def my_attendance(
    course_id: Optional[UUID] = Query(None),
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    service = SessionService(db)
    return await service.student_attendance(student.id, course_id)
