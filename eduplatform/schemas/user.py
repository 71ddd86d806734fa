# eduplatform/schemas/user.py
from typing import Optional
from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..models.enums import UserRole
from .common import PartialUpdate


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    profile_image_url: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.STUDENT
    phone: Optional[str] = Field(default=None, max_length=20)


class UserUpdate(PartialUpdate):
    required_fields = ("name", "email", "role", "is_active")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    date_of_birth: Optional[date] = None
    profile_image_url: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None


class PasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6, max_length=128)


class ParentLinkCreate(BaseModel):
    relationship_type: str = Field(default="parent", min_length=1, max_length=50)
