# eduplatform/routers/parents.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_parent
from ..models.user import User
from ..services.parent_service import ParentService
from ..utils.time import ensure_utc

router = APIRouter(prefix="/parents", tags=["Parent Portal"])


@router.get("/children")
async def list_children(
    parent: User = Depends(require_parent),
    db: AsyncSession = Depends(get_db)
):
    """Students linked to the calling parent"""
    service = ParentService(db)
    children = await service.list_children(parent.id)
    return {"children": children, "total": len(children)}


@router.get("/children/{child_id}/progress")
async def child_progress(
    child_id: UUID,
    parent: User = Depends(require_parent),
    db: AsyncSession = Depends(get_db)
):
    service = ParentService(db)
    return await service.child_progress(parent.id, child_id)


@router.get("/children/{child_id}/attendance")
async def child_attendance(
    child_id: UUID,
    parent: User = Depends(require_parent),
    db: AsyncSession = Depends(get_db)
):
    service = ParentService(db)
    return await service.child_attendance(parent.id, child_id)


@router.get("/schedule")
async def children_schedule(
    child_id: Optional[UUID] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    parent: User = Depends(require_parent),
    db: AsyncSession = Depends(get_db)
):
    """Upcoming class sessions across all linked children, or one child"""
    service = ParentService(db)
    sessions = await service.schedule(
        parent.id,
        child_id,
        start_date=ensure_utc(start_date),
        end_date=ensure_utc(end_date),
    )
    return {"sessions": sessions, "total": len(sessions)}


@router.get("/teachers")
async def children_teachers(
    child_id: Optional[UUID] = Query(None),
    parent: User = Depends(require_parent),
    db: AsyncSession = Depends(get_db)
):
    service = ParentService(db)
    teachers = await service.teachers(parent.id, child_id)
    return {"teachers": teachers, "total": len(teachers)}
