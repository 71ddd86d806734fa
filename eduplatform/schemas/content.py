# eduplatform/schemas/content.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from ..models.enums import ContentType
from .common import PartialUpdate


class ContentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    content_type: ContentType = ContentType.TEXT
    file_url: Optional[str] = Field(default=None, max_length=500)
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    # Appended after the last item when omitted
    order_index: Optional[int] = Field(default=None, ge=0)
    is_public: bool = False


class ContentUpdate(PartialUpdate):
    required_fields = ("title", "content_type", "is_public")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    content_type: Optional[ContentType] = None
    file_url: Optional[str] = Field(default=None, max_length=500)
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    is_public: Optional[bool] = None


class ContentMove(BaseModel):
    order_index: int = Field(..., ge=0)


class ContentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    description: Optional[str] = None
    content_type: ContentType
    file_url: Optional[str] = None
    duration_minutes: Optional[int] = None
    order_index: int
    is_public: bool
    created_at: datetime
