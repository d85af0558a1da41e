"""
Audit log de la plataforma.
Solo inserta: cambios de estado de clínicas y citas, y reemplazos del
horario semanal, con quién los hizo y desde qué IP.
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.models.audit_log import AuditLog


def _to_json(value: Any) -> Any:
    """Convierte recursivamente enums, fechas, horas, UUID y Decimal a tipos JSON."""
    if isinstance(value, dict):
        return {key: _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


async def log_action(
    db: AsyncSession,
    *,
    clinic_id: UUID | None,
    user_id: UUID | None,
    entity: str,
    entity_id: str,
    action: str,
    old_data: dict | None = None,
    new_data: dict | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    entry = AuditLog(
        clinic_id=clinic_id,
        user_id=user_id,
        entity=entity,
        entity_id=str(entity_id),
        action=action,
        old_data=_to_json(old_data),
        new_data=_to_json(new_data),
        ip_address=ip_address,
    )
    db.add(entry)
    await db.flush()
    return entry


async def log_status_change(
    db: AsyncSession,
    *,
    entity: str,
    entity_id: UUID,
    clinic_id: UUID | None,
    actor_id: UUID | None,
    old_status: Enum,
    new_status: Enum,
    ip_address: str | None = None,
    **details: Any,
) -> AuditLog:
    """
    Registra una transición de estado. `details` (motivo, etc.) viaja junto
    al nuevo estado en `new_data`.
    """
    return await log_action(
        db,
        clinic_id=clinic_id,
        user_id=actor_id,
        entity=entity,
        entity_id=str(entity_id),
        action="status_change",
        old_data={"status": old_status},
        new_data={"status": new_status, **details},
        ip_address=ip_address,
    )
