# eduplatform/routers/assignments.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user, require_admin_or_teacher, require_student
from ..models.user import User
from ..schemas.assignment import (
    AssignmentCreate, AssignmentOut, AssignmentUpdate, GradeRequest, SubmissionCreate, SubmissionOut
)
from ..services.assignment_service import AssignmentService
from ..utils.pagination import PaginationParams, paginated_response, pagination_params

router = APIRouter(prefix="/assignments", tags=["Assignments"])


@router.get("")
async def list_assignments(
    course_id: Optional[UUID] = Query(None),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Assignments visible to the caller's role"""
    service = AssignmentService(db)
    page = await service.list_assignments(current_user, pagination, course_id=course_id)
    return paginated_response(
        [AssignmentOut.model_validate(a) for a in page["items"]],
        pagination.page,
        pagination.size,
        page["total"]
    )


@router.post("", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: AssignmentCreate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    return await service.create_assignment(current_user, payload.model_dump())


@router.put("/submissions/{submission_id}/grade", response_model=SubmissionOut)
async def grade_submission(
    submission_id: UUID,
    payload: GradeRequest,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    return await service.grade(current_user, submission_id, payload.grade, payload.feedback)


@router.get("/{assignment_id}", response_model=AssignmentOut)
async def get_assignment(
    assignment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    return await service.get_for_user(current_user, assignment_id)


@router.put("/{assignment_id}", response_model=AssignmentOut)
async def update_assignment(
    assignment_id: UUID,
    payload: AssignmentUpdate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    return await service.update_assignment(current_user, assignment_id, payload.model_dump(exclude_unset=True))


@router.delete("/{assignment_id}")
async def delete_assignment(
    assignment_id: UUID,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    await service.delete_assignment(current_user, assignment_id)
    return {"message": "Assignment deleted successfully"}


@router.post("/{assignment_id}/submit", status_code=status.HTTP_201_CREATED)
async def submit_assignment(
    assignment_id: UUID,
    payload: SubmissionCreate,
    response: Response,
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Submit or resubmit; late work is accepted and flagged"""
    service = AssignmentService(db)
    submission, created, past_due = await service.submit(student, assignment_id, payload.model_dump())
    if not created:
        response.status_code = status.HTTP_200_OK
    return {
        "message": "Assignment submitted successfully" if created else "Submission updated successfully",
        "submission": SubmissionOut.model_validate(submission),
        "is_past_due": past_due,
    }


@router.get("/{assignment_id}/submissions")
async def list_submissions(
    assignment_id: UUID,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    submissions = await service.list_submissions(current_user, assignment_id)
    return {"assignment_id": assignment_id, "submissions": submissions, "total": len(submissions)}
