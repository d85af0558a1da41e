"""
Fichas de detalle para administración: una clínica con su actividad
reciente y un paciente con todas sus citas y reseñas.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from dental_marketplace.core.exceptions import NotFoundException
from dental_marketplace.models.appointment import Appointment, AppointmentStatus
from dental_marketplace.models.clinic import Clinic
from dental_marketplace.models.patient import Patient
from dental_marketplace.models.review import Review
from dental_marketplace.models.service import Service
from dental_marketplace.schemas.admin import (
    AdminClinicCounts,
    AdminClinicDetail,
    AdminPatientCounts,
    AdminPatientDetail,
)
from dental_marketplace.schemas.service import ServiceResponse
from dental_marketplace.services import doctor_service, review_service
from dental_marketplace.services.appointment_service import (
    appointment_load_options,
    appointment_to_response,
)
from dental_marketplace.services.clinic_service import clinic_to_admin_response
from dental_marketplace.services.patient_service import patient_to_response

RECENT_APPOINTMENTS = 10
RECENT_REVIEWS = 5


async def _count(db: AsyncSession, column, *criteria) -> int:
    result = await db.execute(select(func.count(column)).where(*criteria))
    return result.scalar() or 0


async def get_clinic_detail(db: AsyncSession, clinic_id: UUID) -> AdminClinicDetail:
    """Cualquier clínica, sin importar su estado."""
    result = await db.execute(
        select(Clinic).options(joinedload(Clinic.owner)).where(Clinic.id == clinic_id)
    )
    clinic = result.scalar_one_or_none()
    if not clinic:
        raise NotFoundException("Clínica", "Clínica no encontrada")

    services = await db.execute(
        select(Service).where(Service.clinic_id == clinic.id).order_by(Service.name)
    )
    appointments = await db.execute(
        select(Appointment)
        .options(*appointment_load_options())
        .where(Appointment.clinic_id == clinic.id)
        .order_by(Appointment.start_time.desc())
        .limit(RECENT_APPOINTMENTS)
    )
    reviews = await db.execute(
        select(Review)
        .options(joinedload(Review.user))
        .where(Review.clinic_id == clinic.id)
        .order_by(Review.created_at.desc())
        .limit(RECENT_REVIEWS)
    )

    counts = AdminClinicCounts(
        appointments=await _count(db, Appointment.id, Appointment.clinic_id == clinic.id),
        patients=await _count(
            db, func.distinct(Appointment.patient_id), Appointment.clinic_id == clinic.id
        ),
        services=await _count(db, Service.id, Service.clinic_id == clinic.id),
        reviews=await _count(db, Review.id, Review.clinic_id == clinic.id),
    )

    return AdminClinicDetail(
        clinic=clinic_to_admin_response(clinic),
        services=[ServiceResponse.model_validate(s) for s in services.scalars().all()],
        doctors=await doctor_service.list_doctors(db, clinic.id),
        recent_appointments=[
            appointment_to_response(a) for a in appointments.scalars().unique().all()
        ],
        recent_reviews=[
            review_service.review_to_response(r) for r in reviews.scalars().unique().all()
        ],
        rating=await review_service.get_summary(db, clinic.id),
        counts=counts,
    )


async def get_patient_detail(db: AsyncSession, patient_id: UUID) -> AdminPatientDetail:
    result = await db.execute(
        select(Patient).options(joinedload(Patient.user)).where(Patient.id == patient_id)
    )
    patient = result.scalar_one_or_none()
    if not patient:
        raise NotFoundException("Paciente")

    appointments = await db.execute(
        select(Appointment)
        .options(*appointment_load_options())
        .where(Appointment.patient_id == patient.id)
        .order_by(Appointment.start_time.desc())
    )
    appointments = appointments.scalars().unique().all()

    reviews = await db.execute(
        select(Review)
        .options(joinedload(Review.user))
        .where(Review.user_id == patient.user_id)
        .order_by(Review.created_at.desc())
    )
    reviews = reviews.scalars().unique().all()

    return AdminPatientDetail(
        patient=patient_to_response(patient),
        role=patient.user.role,
        is_active=patient.user.is_active,
        appointments=[appointment_to_response(a) for a in appointments],
        reviews=[review_service.review_to_response(r) for r in reviews],
        counts=AdminPatientCounts(
            appointments=len(appointments),
            completed=sum(1 for a in appointments if a.status == AppointmentStatus.COMPLETED),
            cancelled=sum(1 for a in appointments if a.status == AppointmentStatus.CANCELLED),
            reviews=len(reviews),
        ),
    )
