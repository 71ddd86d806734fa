# eduplatform/services/auth_service.py
from typing import Any, Dict, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import AuthenticationError, BadRequestError, ConflictError
from ..core.security import create_access_token, hash_password, verify_password
from ..models.enums import UserRole
from ..models.user import User
from ..utils.time import utcnow

logger = logging.getLogger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(user.id, user.email, user.role.value)


class AuthService(BaseService[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(self, data: Dict[str, Any]) -> User:
        """Create a user with a hashed password; emails are unique case-insensitively."""
        data = dict(data)
        data["email"] = data["email"].lower()
        if await self.get_by_email(data["email"]):
            raise ConflictError("User with this email already exists")

        data["password_hash"] = hash_password(data.pop("password"))
        user = await self.create(data)
        logger.info(f"Created {user.role.value} account {user.id}")
        return user

    async def register(self, data: Dict[str, Any]) -> Dict[str, Any]:
        user = await self.create_user(data)
        return {"user": user, "token": issue_token(user)}

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Check credentials and issue a token.

        Unknown email and wrong password give the same message so accounts
        cannot be enumerated.
        """
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        user = await self.update(user, {"last_login": utcnow()})
        logger.info(f"User {user.id} logged in")
        return {"user": user, "token": issue_token(user)}

    async def update_profile(self, user: User, data: Dict[str, Any]) -> User:
        return await self.update(user, data)

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")
        await self.update(user, {"password_hash": hash_password(new_password)})
        logger.info(f"User {user.id} changed password")

    async def deactivate_account(self, user: User) -> User:
        """Self-service deactivation; the account can no longer log in."""
        if user.role == UserRole.ADMIN:
            raise BadRequestError("You cannot deactivate your own account")
        user = await self.deactivate(user)
        logger.info(f"User {user.id} deactivated their account")
        return user
