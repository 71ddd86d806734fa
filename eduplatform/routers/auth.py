# eduplatform/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..core.dependencies import get_current_user
from ..core.rate_limiter import rate_limit
from ..models.user import User
from ..schemas.auth import LoginRequest, PasswordChange, ProfileUpdate, RegisterRequest
from ..schemas.user import UserOut
from ..services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])

auth_rate_limit = rate_limit(settings.auth_rate_limit_per_minute)


@router.post("/register", status_code=status.HTTP_201_CREATED, dependencies=[Depends(auth_rate_limit)])
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Self-registration for students, teachers and parents"""
    service = AuthService(db)
    result = await service.register(payload.model_dump())
    return {
        "message": "User registered successfully",
        "user": UserOut.model_validate(result["user"]),
        "token": result["token"],
    }


@router.post("/login", dependencies=[Depends(auth_rate_limit)])
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    service = AuthService(db)
    result = await service.login(payload.email, payload.password)
    return {
        "message": "Login successful",
        "user": UserOut.model_validate(result["user"]),
        "token": result["token"],
    }


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserOut)
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AuthService(db)
    return await service.update_profile(current_user, payload.model_dump(exclude_unset=True))


@router.post("/change-password")
async def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AuthService(db)
    await service.change_password(current_user, payload.current_password, payload.new_password)
    return {"message": "Password changed successfully"}


@router.put("/deactivate")
async def deactivate_account(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate the calling account; existing tokens stop working"""
    service = AuthService(db)
    await service.deactivate_account(current_user)
    return {"message": "Account deactivated successfully"}
