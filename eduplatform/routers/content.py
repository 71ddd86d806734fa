# eduplatform/routers/content.py
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user, require_admin_or_teacher
from ..models.user import User
from ..schemas.content import ContentCreate, ContentMove, ContentOut, ContentUpdate
from ..services.content_service import ContentService

router = APIRouter(prefix="/content", tags=["Course Content"])


@router.get("/courses/{course_id}/materials")
async def list_materials(
    course_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    items = await service.list_for_course(current_user, course_id)
    return {
        "course_id": course_id,
        "materials": [ContentOut.model_validate(item) for item in items],
        "total": len(items),
    }


@router.post("/courses/{course_id}/materials", response_model=ContentOut, status_code=status.HTTP_201_CREATED)
async def create_material(
    course_id: UUID,
    payload: ContentCreate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    return await service.create_content(current_user, course_id, payload.model_dump())


@router.get("/materials/{content_id}", response_model=ContentOut)
async def get_material(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    return await service.get_for_user(current_user, content_id)


@router.put("/materials/{content_id}", response_model=ContentOut)
async def update_material(
    content_id: UUID,
    payload: ContentUpdate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    return await service.update_content(current_user, content_id, payload.model_dump(exclude_unset=True))


@router.post("/materials/{content_id}/move")
async def move_material(
    content_id: UUID,
    payload: ContentMove,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Move an item to a new position; siblings are renumbered"""
    service = ContentService(db)
    items = await service.move(current_user, content_id, payload.order_index)
    return {"message": "Content reordered", "materials": [ContentOut.model_validate(item) for item in items]}


@router.delete("/materials/{content_id}")
async def delete_material(
    content_id: UUID,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = ContentService(db)
    await service.delete_content(current_user, content_id)
    return {"message": "Content deleted successfully"}
