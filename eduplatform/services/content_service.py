# eduplatform/services/content_service.py
from typing import Any, Dict, List
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import NotFoundError, PermissionDeniedError
from ..core.permissions import ensure_can_view_course, get_managed_course
from ..models.content import Content
from ..models.course import Course
from ..models.user import User

logger = logging.getLogger(__name__)


class ContentService(BaseService[Content]):
    def __init__(self, db: AsyncSession):
        super().__init__(Content, db)

    async def get_or_404(self, content_id: UUID) -> Content:
        content = await self.get(content_id)
        if not content:
            raise NotFoundError("Content")
        return content

    async def _ordered(self, course_id: UUID) -> List[Content]:
        return await self.get_multi(
            limit=None,
            order_by=(Content.order_index.asc(), Content.created_at.asc()),
            course_id=course_id
        )

    async def _can_see_private(self, user: User, course: Course) -> bool:
        try:
            await ensure_can_view_course(self.db, user, course)
        except PermissionDeniedError:
            return False
        return True

    async def list_for_course(self, user: User, course_id: UUID) -> List[Content]:
        """Materials in order. Outsiders only see the public ones."""
        course = await self.db.get(Course, course_id)
        if not course:
            raise NotFoundError("Course")
        items = await self._ordered(course.id)
        if await self._can_see_private(user, course):
            return items
        return [item for item in items if item.is_public]

    async def get_for_user(self, user: User, content_id: UUID) -> Content:
        content = await self.get_or_404(content_id)
        if content.is_public:
            return content
        course = await self.db.get(Course, content.course_id)
        await ensure_can_view_course(self.db, user, course)
        return content

    async def create_content(self, user: User, course_id: UUID, data: Dict[str, Any]) -> Content:
        course = await get_managed_course(self.db, user, course_id, action="add content to")
        siblings = await self._ordered(course.id)

        position = data.pop("order_index", None)
        if position is None or position >= len(siblings):
            position = len(siblings)

        content = Content(course_id=course.id, order_index=position, **data)
        # Make room at the requested slot
        for index, item in enumerate(siblings):
            item.order_index = index if index < position else index + 1
        self.db.add(content)
        await self.db.commit()
        await self.db.refresh(content)
        logger.info(f"Content {content.id} added to course {course.id} at position {position}")
        return content

    async def update_content(self, user: User, content_id: UUID, data: Dict[str, Any]) -> Content:
        content = await self.get_or_404(content_id)
        await get_managed_course(self.db, user, content.course_id, action="update content of")
        return await self.update(content, data)

    async def move(self, user: User, content_id: UUID, new_index: int) -> List[Content]:
        """Move one item and renumber its siblings 0..n-1."""
        content = await self.get_or_404(content_id)
        await get_managed_course(self.db, user, content.course_id, action="reorder content of")

        items = [item for item in await self._ordered(content.course_id) if item.id != content.id]
        new_index = min(new_index, len(items))
        items.insert(new_index, content)
        for index, item in enumerate(items):
            item.order_index = index
        await self.db.commit()
        return items

    async def delete_content(self, user: User, content_id: UUID) -> None:
        content = await self.get_or_404(content_id)
        await get_managed_course(self.db, user, content.course_id, action="delete content of")
        course_id = content.course_id

        await self.db.delete(content)
        await self.db.flush()
        for index, item in enumerate(await self._ordered(course_id)):
            item.order_index = index
        await self.db.commit()
        logger.info(f"Content {content_id} deleted by {user.id}")
