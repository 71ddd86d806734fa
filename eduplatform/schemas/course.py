# eduplatform/schemas/course.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from .common import PartialUpdate


class CourseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    price: float = Field(default=0, ge=0)
    duration_weeks: int = Field(default=1, ge=1)
    max_students: int = Field(default=30, ge=1)
    difficulty_level: Optional[str] = Field(default=None, max_length=50)


class CourseCreate(CourseBase):
    # Required when an admin creates the course; teachers always instruct their own
    instructor_id: Optional[UUID] = None


class CourseUpdate(PartialUpdate):
    required_fields = (
        "title", "description", "price", "duration_weeks", "max_students", "is_active", "instructor_id"
    )

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration_weeks: Optional[int] = Field(default=None, ge=1)
    max_students: Optional[int] = Field(default=None, ge=1)
    difficulty_level: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None
    instructor_id: Optional[UUID] = None


class CourseOut(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    instructor_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime
