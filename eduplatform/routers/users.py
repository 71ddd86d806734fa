# eduplatform/routers/users.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user, require_admin
from ..core.exceptions import PermissionDeniedError
from ..core.permissions import is_admin
from ..models.enums import UserRole
from ..models.user import User
from ..schemas.user import ParentLinkCreate, PasswordReset, UserCreate, UserOut, UserUpdate
from ..services.user_service import UserService
from ..utils.pagination import PaginationParams, paginated_response, pagination_params

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(pagination_params),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List users with role, status and name/email filters"""
    service = UserService(db)
    page = await service.list_users(pagination, role=role, is_active=is_active, search=search)
    return paginated_response(
        [UserOut.model_validate(u) for u in page["items"]],
        pagination.page,
        pagination.size,
        page["total"]
    )


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    return await service.create_user(payload.model_dump())


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not is_admin(current_user) and current_user.id != user_id:
        raise PermissionDeniedError("You can only view your own account")
    service = UserService(db)
    return await service.get_or_404(user_id)


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    return await service.update_user(admin, user_id, payload.model_dump(exclude_unset=True))


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a user; related rows are kept"""
    service = UserService(db)
    user = await service.deactivate_user(admin, user_id)
    return {"message": "User deactivated successfully", "user": UserOut.model_validate(user)}


@router.post("/{user_id}/reset-password")
async def reset_password(
    user_id: UUID,
    payload: PasswordReset,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    await service.reset_password(user_id, payload.new_password)
    return {"message": "Password reset successfully"}


@router.post("/{parent_id}/link-student/{student_id}", status_code=status.HTTP_201_CREATED)
async def link_student(
    parent_id: UUID,
    student_id: UUID,
    payload: Optional[ParentLinkCreate] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    relationship_type = payload.relationship_type if payload else "parent"
    link = await service.link_parent(parent_id, student_id, relationship_type)
    return {
        "message": "Student linked to parent",
        "id": link.id,
        "parent_id": link.parent_id,
        "student_id": link.student_id,
        "relationship_type": link.relationship_type,
    }


@router.delete("/{parent_id}/link-student/{student_id}")
async def unlink_student(
    parent_id: UUID,
    student_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    await service.unlink_parent(parent_id, student_id)
    return {"message": "Student unlinked from parent"}
