# eduplatform/schemas/notification.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from ..models.enums import NotificationType


class NotificationCreate(BaseModel):
    user_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    notification_type: NotificationType = NotificationType.INFO
    action_url: Optional[str] = Field(default=None, max_length=500)


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    content: str
    notification_type: NotificationType
    is_read: bool
    action_url: Optional[str] = None
    created_at: datetime
