"""
Lógica de negocio para los odontólogos de cada clínica.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.core.exceptions import NotFoundException
from dental_marketplace.models.doctor import Doctor
from dental_marketplace.schemas.doctor import DoctorCreate, DoctorResponse, DoctorUpdate


async def _get_doctor_or_404(db: AsyncSession, clinic_id: UUID, doctor_id: UUID) -> Doctor:
    result = await db.execute(
        select(Doctor).where(Doctor.id == doctor_id, Doctor.clinic_id == clinic_id)
    )
    doctor = result.scalar_one_or_none()
    if not doctor:
        raise NotFoundException("Odontólogo")
    return doctor


async def list_doctors(db: AsyncSession, clinic_id: UUID) -> list[DoctorResponse]:
    result = await db.execute(
        select(Doctor).where(Doctor.clinic_id == clinic_id).order_by(Doctor.name)
    )
    return [DoctorResponse.model_validate(d) for d in result.scalars().all()]


async def create_doctor(
    db: AsyncSession,
    clinic_id: UUID,
    data: DoctorCreate,
) -> DoctorResponse:
    doctor = Doctor(
        clinic_id=clinic_id,
        name=data.name.strip(),
        specialization=data.specialization.strip(),
        bio=data.bio,
        experience_years=data.experience_years,
        image_url=str(data.image_url) if data.image_url else None,
    )
    db.add(doctor)
    await db.flush()
    await db.refresh(doctor)
    return DoctorResponse.model_validate(doctor)


async def update_doctor(
    db: AsyncSession,
    clinic_id: UUID,
    doctor_id: UUID,
    data: DoctorUpdate,
) -> DoctorResponse:
    doctor = await _get_doctor_or_404(db, clinic_id, doctor_id)

    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in ("name", "specialization", "experience_years"):
            continue
        if key == "image_url" and value is not None:
            value = str(value)
        setattr(doctor, key, value)

    await db.flush()
    await db.refresh(doctor)
    return DoctorResponse.model_validate(doctor)


async def delete_doctor(db: AsyncSession, clinic_id: UUID, doctor_id: UUID) -> None:
    doctor = await _get_doctor_or_404(db, clinic_id, doctor_id)
    await db.delete(doctor)
    await db.flush()
