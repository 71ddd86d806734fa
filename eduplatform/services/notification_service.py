# eduplatform/services/notification_service.py
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import NotFoundError, PermissionDeniedError
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.enums import EnrollmentStatus, NotificationType, UserRole
from ..models.notification import Notification
from ..models.user import User
from ..utils.pagination import PaginationParams

logger = logging.getLogger(__name__)


class NotificationService(BaseService[Notification]):
    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    async def notify(
        self,
        user_id: UUID,
        title: str,
        content: str,
        notification_type: NotificationType = NotificationType.INFO,
        action_url: Optional[str] = None
    ) -> Notification:
        """Queue a notification inside the caller's transaction; the caller commits."""
        return await self.create({
            "user_id": user_id,
            "title": title,
            "content": content,
            "notification_type": notification_type,
            "action_url": action_url,
        }, commit=False)

    async def list_for_user(self, user_id: UUID, params: PaginationParams, unread_only: bool = False) -> Dict[str, Any]:
        filters = {"user_id": user_id}
        if unread_only:
            filters["is_read"] = False
        page = await self.get_paginated(params, **filters)
        page["unread_count"] = await self.unread_count(user_id)
        return page

    async def unread_count(self, user_id: UUID) -> int:
        stmt = select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def _get_own(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self.get(notification_id)
        # Other users' notifications are reported as missing
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notification")
        return notification

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self._get_own(user_id, notification_id)
        return await self.update(notification, {"is_read": True})

    async def mark_all_read(self, user_id: UUID) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)
            .values(is_read=True)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount

    async def delete_own(self, user_id: UUID, notification_id: UUID) -> None:
        notification = await self._get_own(user_id, notification_id)
        await self.hard_delete(notification)

    async def send(self, sender: User, data: Dict[str, Any]) -> Notification:
        """Admin or teacher sending a notification to one user."""
        recipient = await self.db.get(User, data["user_id"])
        if not recipient or not recipient.is_active:
            raise NotFoundError("Recipient")

        if sender.role == UserRole.TEACHER and recipient.id != sender.id:
            # Teachers may only reach students enrolled in one of their courses
            stmt = select(Enrollment.id).join(Course, Course.id == Enrollment.course_id).where(
                Course.instructor_id == sender.id,
                Enrollment.student_id == recipient.id,
                Enrollment.status == EnrollmentStatus.ACTIVE
            )
            if (await self.db.execute(stmt)).first() is None:
                raise PermissionDeniedError("You can only notify students enrolled in your courses")

        notification = await self.create(data)
        logger.info(f"User {sender.id} sent notification {notification.id} to {recipient.id}")
        return notification
