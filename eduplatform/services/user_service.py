# eduplatform/services/user_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .auth_service import AuthService
from .base_service import BaseService
from ..core.exceptions import BadRequestError, ConflictError, NotFoundError
from ..core.security import hash_password
from ..models.enums import UserRole
from ..models.user import ParentStudentLink, User
from ..utils.pagination import PaginationParams

logger = logging.getLogger(__name__)


class UserService(BaseService[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_or_404(self, user_id: UUID) -> User:
        user = await self.get(user_id)
        if not user:
            raise NotFoundError("User")
        return user

    async def list_users(
        self,
        params: PaginationParams,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None
    ) -> Dict[str, Any]:
        """Admin listing; deactivated accounts are included unless filtered out."""
        conditions = []
        if role is not None:
            conditions.append(User.role == role)
        if is_active is not None:
            conditions.append(User.is_active == is_active)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)))

        total = (await self.db.execute(
            select(func.count()).select_from(User).where(*conditions)
        )).scalar_one()

        stmt = (
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc())
            .offset(params.offset)
            .limit(params.size)
        )
        result = await self.db.execute(stmt)
        return {"items": list(result.scalars().all()), "total": total}

    async def create_user(self, data: Dict[str, Any]) -> User:
        return await AuthService(self.db).create_user(data)

    async def update_user(self, admin: User, user_id: UUID, data: Dict[str, Any]) -> User:
        if admin.id == user_id and data.get("is_active") is False:
            raise BadRequestError("You cannot deactivate your own account")
        user = await self.get_or_404(user_id)
        if "email" in data and data["email"]:
            data["email"] = data["email"].lower()
            existing = await AuthService(self.db).get_by_email(data["email"])
            if existing and existing.id != user.id:
                raise ConflictError("User with this email already exists")
        return await self.update(user, data)

    async def deactivate_user(self, admin: User, user_id: UUID) -> User:
        """Soft delete. Enrollments, courses and notifications stay in place."""
        if admin.id == user_id:
            raise BadRequestError("You cannot deactivate your own account")
        user = await self.get_or_404(user_id)
        user = await self.deactivate(user)
        logger.info(f"Admin {admin.id} deactivated user {user.id}")
        return user

    async def reset_password(self, user_id: UUID, new_password: str) -> None:
        user = await self.get_or_404(user_id)
        await self.update(user, {"password_hash": hash_password(new_password)})
        logger.info(f"Password reset for user {user.id}")

    async def _get_with_role(self, user_id: UUID, role: UserRole) -> User:
        user = await self.get(user_id)
        if not user or user.role != role:
            raise NotFoundError(role.value.capitalize())
        return user

    async def _get_link(self, parent_id: UUID, student_id: UUID) -> Optional[ParentStudentLink]:
        stmt = select(ParentStudentLink).where(
            ParentStudentLink.parent_id == parent_id,
            ParentStudentLink.student_id == student_id
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def link_parent(self, parent_id: UUID, student_id: UUID, relationship_type: str = "parent") -> ParentStudentLink:
        await self._get_with_role(parent_id, UserRole.PARENT)
        await self._get_with_role(student_id, UserRole.STUDENT)

        if await self._get_link(parent_id, student_id):
            raise ConflictError("Parent is already linked to this student")

        link = ParentStudentLink(parent_id=parent_id, student_id=student_id, relationship_type=relationship_type)
        self.db.add(link)
        await self.db.commit()
        await self.db.refresh(link)
        logger.info(f"Linked parent {parent_id} to student {student_id}")
        return link

    async def unlink_parent(self, parent_id: UUID, student_id: UUID) -> None:
        link = await self._get_link(parent_id, student_id)
        if not link:
            raise NotFoundError("Parent link")
        await self.db.delete(link)
        await self.db.commit()
        logger.info(f"Unlinked parent {parent_id} from student {student_id}")

    async def list_children(self, parent_id: UUID) -> List[User]:
        stmt = (
            select(User)
            .join(ParentStudentLink, ParentStudentLink.student_id == User.id)
            .where(ParentStudentLink.parent_id == parent_id)
            .order_by(User.name)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
