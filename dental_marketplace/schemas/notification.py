"""
Schemas para notificaciones in-app.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from dental_marketplace.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    appointment_id: UUID | None = None
    type: NotificationType
    title: str
    message: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int
    total: int
    page: int
    size: int
    pages: int


class MarkAllReadResponse(BaseModel):
    updated: int
