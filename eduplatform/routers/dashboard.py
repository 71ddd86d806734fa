# eduplatform/routers/dashboard.py
from fastapi import APIRouter, Depends

from ..core.database import get_session_factory
from ..core.dependencies import require_admin, require_parent, require_student, require_teacher
from ..models.user import User
from ..services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_dashboard_service() -> DashboardService:
    return DashboardService(get_session_factory())


@router.get("/student")
async def student_dashboard(
    student: User = Depends(require_student),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.student_dashboard(student)


@router.get("/teacher")
async def teacher_dashboard(
    teacher: User = Depends(require_teacher),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.teacher_dashboard(teacher)


@router.get("/parent")
async def parent_dashboard(
    parent: User = Depends(require_parent),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.parent_dashboard(parent)


@router.get("/admin")
async def admin_dashboard(
    admin: User = Depends(require_admin),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.admin_dashboard(admin)
