# eduplatform/routers/sessions.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user, require_admin_or_teacher
from ..models.enums import SessionStatus
from ..models.user import User
from ..schemas.session import (
    AttendanceMark, AttendanceOut, BulkAttendanceRequest, SessionCreate, SessionOut, SessionUpdate
)
from ..services.session_service import SessionService
from ..utils.pagination import PaginationParams, paginated_response, pagination_params

router = APIRouter(prefix="/sessions", tags=["Class Sessions"])


@router.get("")
async def list_sessions(
    course_id: Optional[UUID] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    status_filter: Optional[SessionStatus] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = SessionService(db)
    page = await service.list_sessions(
        current_user,
        pagination,
        course_id=course_id,
        date_from=date_from,
        date_to=date_to,
        status=status_filter
    )
    return paginated_response(page["items"], pagination.page, pagination.size, page["total"])


@router.get("/{session_id}")
async def get_session(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Session with attendance and the enrolled students not yet marked"""
    service = SessionService(db)
    return await service.get_session_detail(current_user, session_id)


@router.post("", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = SessionService(db)
    return await service.create_session(current_user, payload.model_dump())


@router.put("/{session_id}", response_model=SessionOut)
async def update_session(
    session_id: UUID,
    payload: SessionUpdate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = SessionService(db)
    return await service.update_session(current_user, session_id, payload.model_dump(exclude_unset=True))


@router.delete("/{session_id}")
async def delete_session(
    session_id: UUID,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = SessionService(db)
    await service.delete_session(current_user, session_id)
    return {"message": "Session deleted successfully"}


@router.post("/{session_id}/attendance", status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    session_id: UUID,
    payload: AttendanceMark,
    response: Response,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = SessionService(db)
    attendance, created = await service.mark_attendance(current_user, session_id, payload.model_dump())
    if not created:
        response.status_code = status.HTTP_200_OK
    return {
        "message": "Attendance recorded" if created else "Attendance updated",
        "attendance": AttendanceOut.model_validate(attendance),
    }


@router.post("/{session_id}/attendance/bulk")
async def bulk_mark_attendance(
    session_id: UUID,
    payload: BulkAttendanceRequest,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Mark attendance for many students at once"""
    service = SessionService(db)
    records = [record.model_dump() for record in payload.attendance_records]
    return await service.bulk_mark_attendance(current_user, session_id, records)
