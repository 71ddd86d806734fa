# eduplatform/routers/notifications.py
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user, require_admin_or_teacher
from ..models.user import User
from ..schemas.notification import NotificationCreate, NotificationOut
from ..services.notification_service import NotificationService
from ..utils.pagination import PaginationParams, paginated_response, pagination_params

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = Query(False),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = NotificationService(db)
    page = await service.list_for_user(current_user.id, pagination, unread_only=unread_only)
    return paginated_response(
        [NotificationOut.model_validate(n) for n in page["items"]],
        pagination.page,
        pagination.size,
        page["total"],
        additional_info={"unread_count": page["unread_count"]}
    )


@router.put("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = NotificationService(db)
    updated = await service.mark_all_read(current_user.id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.put("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = NotificationService(db)
    return await service.mark_read(current_user.id, notification_id)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = NotificationService(db)
    await service.delete_own(current_user.id, notification_id)
    return {"message": "Notification deleted"}


@router.post("/send", response_model=NotificationOut, status_code=status.HTTP_201_CREATED)
async def send_notification(
    payload: NotificationCreate,
    current_user: User = Depends(require_admin_or_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Send a notification to one user"""
    service = NotificationService(db)
    return await service.send(current_user, payload.model_dump())
