# eduplatform/routers/analytics.py
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_admin, require_admin_or_teacher
from ..models.user import User
from ..services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/courses/{course_id}")
async def course_analytics(
    course_id: UUID,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Enrollment, grade and attendance figures for one course"""
    service = AnalyticsService(db)
    return await service.course_analytics(current_user, course_id)


@router.get("/platform")
async def platform_analytics(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = AnalyticsService(db)
    return await service.platform_analytics()


@router.get("/user-growth")
async def user_growth(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Monthly sign-ups of active accounts"""
    service = AnalyticsService(db)
    return {"user_growth": await service.user_growth()}


@router.get("/course-popularity")
async def course_popularity(
    limit: int = Query(10, ge=1, le=50),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = AnalyticsService(db)
    return {"course_popularity": await service.course_popularity(limit)}
