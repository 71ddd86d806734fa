# eduplatform/core/dependencies.py
from typing import Optional
from uuid import UUID
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .exceptions import AuthenticationError, PermissionDeniedError
from .security import decode_access_token
from ..models.user import User
from ..models.enums import UserRole

logger = logging.getLogger(__name__)

# auto_error=False so a missing header yields 401 instead of FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the bearer token to an active user.

    Raises:
        AuthenticationError: 401 if the token is missing or invalid, or the
            account no longer exists or has been deactivated
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise AuthenticationError("Invalid token")

    user = await db.get(User, user_id)
    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user


def require_roles(*roles: UserRole):
    """
    Dependency to check that the current user has one of the allowed roles.
    """
    allowed = set(roles)

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            logger.info(f"User {user.id} with role {user.role.value} denied; requires {sorted(r.value for r in allowed)}")
            raise PermissionDeniedError(
                f"Access denied. Required role: {' or '.join(sorted(r.value for r in allowed))}"
            )
        return user
    return role_checker


require_admin = require_roles(UserRole.ADMIN)
require_teacher = require_roles(UserRole.TEACHER)
require_student = require_roles(UserRole.STUDENT)
require_parent = require_roles(UserRole.PARENT)
require_admin_or_teacher = require_roles(UserRole.ADMIN, UserRole.TEACHER)
