"""
Notificaciones in-app.
El resto de servicios escribe a través de `notify` dentro de su propia
transacción; la lectura y el marcado son siempre del dueño de la notificación.
"""

import logging
import math
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.core.exceptions import NotFoundException
from dental_marketplace.models.notification import Notification, NotificationType
from dental_marketplace.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession,
    *,
    user_id: UUID,
    type: NotificationType,
    title: str,
    message: str,
    appointment_id: UUID | None = None,
) -> None:
    """Agrega una notificación para el usuario en la transacción actual."""
    db.add(
        Notification(
            user_id=user_id,
            appointment_id=appointment_id,
            type=type,
            title=title,
            message=message,
            is_read=False,
        )
    )
    await db.flush()
    logger.debug("Notificación %s para user_id=%s", type.value, user_id)


async def list_notifications(
    db: AsyncSession,
    user_id: UUID,
    *,
    page: int = 1,
    size: int = 20,
    unread_only: bool = False,
    type: NotificationType | None = None,
) -> NotificationListResponse:
    """Notificaciones del usuario, más recientes primero, con total de no leídas."""
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    if type:
        query = query.where(Notification.type == type)

    count_query = select(func.count()).select_from(
        query.with_only_columns(Notification.id).subquery()
    )
    total = (await db.execute(count_query)).scalar() or 0

    unread_result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
    )
    unread_count = unread_result.scalar() or 0

    offset = (page - 1) * size
    query = query.order_by(Notification.created_at.desc()).offset(offset).limit(size)
    result = await db.execute(query)

    return NotificationListResponse(
        notifications=[
            NotificationResponse.model_validate(n) for n in result.scalars().all()
        ],
        unread_count=unread_count,
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0,
    )


async def _get_own_notification(
    db: AsyncSession,
    user_id: UUID,
    notification_id: UUID,
) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFoundException("Notificación", "Notificación no encontrada")
    return notification


async def mark_read(
    db: AsyncSession,
    user_id: UUID,
    notification_id: UUID,
) -> NotificationResponse:
    notification = await _get_own_notification(db, user_id, notification_id)
    notification.is_read = True
    await db.flush()
    return NotificationResponse.model_validate(notification)


async def mark_all_read(db: AsyncSession, user_id: UUID) -> MarkAllReadResponse:
    result = await db.execute(
        update(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
        .values(is_read=True)
    )
    return MarkAllReadResponse(updated=result.rowcount or 0)


async def delete_notification(
    db: AsyncSession,
    user_id: UUID,
    notification_id: UUID,
) -> None:
    notification = await _get_own_notification(db, user_id, notification_id)
    await db.delete(notification)
    await db.flush()


async def list_by_type(
    db: AsyncSession,
    user_id: UUID,
    type: NotificationType,
    limit: int = 20,
) -> list[NotificationResponse]:
    """Últimas notificaciones de un tipo (ej: CLINIC_UPDATE para verificación)."""
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id, Notification.type == type)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    return [NotificationResponse.model_validate(n) for n in result.scalars().all()]
