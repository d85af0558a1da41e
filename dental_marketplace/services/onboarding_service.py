"""
Onboarding: un usuario sin rol elige ser paciente o dueño de clínica.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.policy import resolve_destination
from dental_marketplace.core.security import encrypt_pii
from dental_marketplace.models.clinic import Clinic, ClinicStatus
from dental_marketplace.models.patient import Patient, PatientStatus
from dental_marketplace.models.user import User, UserRole
from dental_marketplace.schemas.clinic import ClinicOnboardingRequest
from dental_marketplace.schemas.patient import PatientOnboardingRequest
from dental_marketplace.services.patient_service import ensure_document_available

logger = logging.getLogger(__name__)


async def onboard_patient(
    db: AsyncSession,
    user: User,
    data: PatientOnboardingRequest,
) -> tuple[Patient, str]:
    """Crea el perfil de paciente y asigna el rol PATIENT."""
    doc_hash = await ensure_document_available(db, data.ic_or_passport)

    patient = Patient(
        name=user.name,
        email=user.email,
        ic_or_passport=encrypt_pii(data.ic_or_passport),
        ic_or_passport_hash=doc_hash,
        phone=encrypt_pii(data.phone),
        age=data.age,
        address=data.address,
        gender=data.gender,
        blood_group=data.blood_group,
        allergies=data.allergies,
        medical_note=data.medical_note,
        status=PatientStatus.ACTIVE,
    )
    user.patient = patient
    user.role = UserRole.PATIENT
    await db.flush()
    await db.refresh(patient)

    logger.info("Onboarding de paciente: user_id=%s patient_id=%s", user.id, patient.id)
    return patient, resolve_destination(user)


async def onboard_clinic(
    db: AsyncSession,
    user: User,
    data: ClinicOnboardingRequest,
) -> tuple[Clinic, str]:
    """Registra la clínica en estado PENDING y asigna el rol CLINIC_OWNER."""
    clinic = Clinic(
        name=data.clinic_name.strip(),
        address=data.clinic_address,
        phone=data.clinic_phone,
        email=data.clinic_email,
        description=data.description,
        documents=list(data.documents),
        status=ClinicStatus.PENDING,
        working_hours=[],
    )
    if data.timezone:
        clinic.timezone = data.timezone

    user.clinic = clinic
    user.role = UserRole.CLINIC_OWNER
    await db.flush()
    await db.refresh(clinic)

    logger.info("Onboarding de clínica: user_id=%s clinic_id=%s", user.id, clinic.id)
    return clinic, resolve_destination(user)
