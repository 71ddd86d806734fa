# eduplatform/routers/courses.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_admin, require_admin_or_teacher
from ..models.user import User
from ..schemas.course import CourseCreate, CourseOut, CourseUpdate
from ..schemas.enrollment import EnrollmentOut, ProgressUpdate
from ..services.course_service import CourseService
from ..services.enrollment_service import EnrollmentService
from ..utils.pagination import PaginationParams, paginated_response, pagination_params

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("")
async def list_courses(
    search: Optional[str] = Query(None, max_length=100),
    instructor_id: Optional[UUID] = Query(None),
    price_max: Optional[float] = Query(None, ge=0),
    pagination: PaginationParams = Depends(pagination_params),
    db: AsyncSession = Depends(get_db)
):
    """Public catalogue of active courses"""
    service = CourseService(db)
    page = await service.list_courses(pagination, search=search, instructor_id=instructor_id, price_max=price_max)
    return paginated_response(page["items"], pagination.page, pagination.size, page["total"])


@router.get("/{course_id}")
async def get_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = CourseService(db)
    return await service.get_course_detail(course_id)


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = CourseService(db)
    return await service.create_course(current_user, payload.model_dump())


@router.put("/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: UUID,
    payload: CourseUpdate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = CourseService(db)
    return await service.update_course(current_user, course_id, payload.model_dump(exclude_unset=True))


@router.delete("/{course_id}")
async def deactivate_course(
    course_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = CourseService(db)
    course = await service.deactivate_course(course_id)
    return {"message": "Course deactivated successfully", "course": CourseOut.model_validate(course)}


@router.get("/{course_id}/students")
async def list_course_students(
    course_id: UUID,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = CourseService(db)
    students = await service.list_students(current_user, course_id)
    return {"course_id": course_id, "students": students, "total": len(students)}


@router.delete("/{course_id}/students/{student_id}", response_model=EnrollmentOut)
async def unenroll_student(
    course_id: UUID,
    student_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Admin removal of a student from a course"""
    service = EnrollmentService(db)
    return await service.unenroll(course_id, student_id)


@router.put("/enrollments/{enrollment_id}/progress", response_model=EnrollmentOut)
async def update_enrollment_progress(
    enrollment_id: UUID,
    payload: ProgressUpdate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = EnrollmentService(db)
    return await service.update_progress(current_user, enrollment_id, payload.model_dump(exclude_unset=True))
