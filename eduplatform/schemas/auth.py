# eduplatform/schemas/auth.py
from typing import Optional
from datetime import date
from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.enums import UserRole
from .common import PartialUpdate


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.STUDENT
    phone: Optional[str] = Field(default=None, max_length=20)

    @field_validator("role")
    @classmethod
    def role_is_self_registrable(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(PartialUpdate):
    required_fields = ("name",)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    date_of_birth: Optional[date] = None
    profile_image_url: Optional[str] = Field(default=None, max_length=500)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)
