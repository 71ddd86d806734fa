# eduplatform/models/notification.py
from sqlalchemy import Column, String, Boolean, Enum, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base
from .enums import NotificationType


class Notification(Base):
    __tablename__ = "notifications"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    notification_type = Column(
        Enum(NotificationType, name="notification_type"),
        default=NotificationType.INFO,
        nullable=False
    )
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    action_url = Column(String(500))

    user = relationship("User", back_populates="notifications")
