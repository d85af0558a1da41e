"""
Servicio de pacientes: perfil propio con cifrado PII y listado para admin.
"""

import math

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.core.exceptions import ConflictException
from dental_marketplace.core.security import decrypt_pii, encrypt_pii, hash_identifier
from dental_marketplace.models.patient import Patient, PatientStatus
from dental_marketplace.schemas.patient import (
    PatientListResponse,
    PatientResponse,
    PatientUpdate,
)


def patient_to_response(patient: Patient) -> PatientResponse:
    """Convierte un modelo Patient a su schema de respuesta, descifrando PII."""
    return PatientResponse(
        id=patient.id,
        user_id=patient.user_id,
        name=patient.name,
        ic_or_passport=decrypt_pii(patient.ic_or_passport),
        phone=decrypt_pii(patient.phone),
        email=patient.email,
        age=patient.age,
        address=patient.address,
        gender=patient.gender,
        blood_group=patient.blood_group,
        allergies=patient.allergies,
        medical_note=patient.medical_note,
        status=patient.status,
        created_at=patient.created_at,
    )


async def ensure_document_available(db: AsyncSession, ic_or_passport: str) -> str:
    """Retorna el hash del documento; 409 si otro paciente ya lo registró."""
    doc_hash = hash_identifier(ic_or_passport)
    existing = await db.execute(
        select(Patient.id).where(Patient.ic_or_passport_hash == doc_hash)
    )
    if existing.scalar_one_or_none():
        raise ConflictException("Ya existe un paciente con ese IC o pasaporte")
    return doc_hash


async def update_profile(
    db: AsyncSession,
    patient: Patient,
    data: PatientUpdate,
) -> PatientResponse:
    """Actualiza el perfil del paciente autenticado."""
    update_fields = data.model_dump(exclude_unset=True)

    for field, value in update_fields.items():
        if value is None and field in ("name", "phone", "age", "address", "gender"):
            continue
        if field == "phone":
            value = encrypt_pii(value)
        setattr(patient, field, value)

    await db.flush()
    await db.refresh(patient)
    return patient_to_response(patient)


async def list_patients(
    db: AsyncSession,
    *,
    page: int = 1,
    size: int = 20,
    search: str | None = None,
    status: PatientStatus | None = None,
) -> PatientListResponse:
    """Listado paginado de todos los pacientes (administración)."""
    query = select(Patient)

    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(Patient.name.ilike(term), Patient.email.ilike(term)))
    if status:
        query = query.where(Patient.status == status)

    count_query = select(func.count()).select_from(
        query.with_only_columns(Patient.id).subquery()
    )
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * size
    query = query.order_by(Patient.created_at.desc()).offset(offset).limit(size)
    result = await db.execute(query)
    patients = result.scalars().all()

    return PatientListResponse(
        items=[patient_to_response(p) for p in patients],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0,
    )
