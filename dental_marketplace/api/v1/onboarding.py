"""
Endpoints de onboarding: el usuario sin rol se registra como paciente
o como dueño de clínica.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.dependencies import require_role
from dental_marketplace.database import get_db
from dental_marketplace.models.user import User, UserRole
from dental_marketplace.schemas.clinic import (
    ClinicOnboardingRequest,
    ClinicOnboardingResponse,
    ClinicResponse,
)
from dental_marketplace.schemas.patient import (
    PatientOnboardingRequest,
    PatientOnboardingResponse,
)
from dental_marketplace.services import onboarding_service
from dental_marketplace.services.patient_service import patient_to_response

router = APIRouter()


@router.post("/patient", response_model=PatientOnboardingResponse, status_code=201)
async def onboard_patient(
    data: PatientOnboardingRequest,
    user: User = Depends(require_role(UserRole.UNASSIGNED)),
    db: AsyncSession = Depends(get_db),
):
    """Completa el perfil de paciente. El IC/pasaporte debe ser único."""
    patient, destination = await onboarding_service.onboard_patient(db, user, data)
    return PatientOnboardingResponse(
        patient=patient_to_response(patient),
        destination=destination,
    )


@router.post("/clinic", response_model=ClinicOnboardingResponse, status_code=201)
async def onboard_clinic(
    data: ClinicOnboardingRequest,
    user: User = Depends(require_role(UserRole.UNASSIGNED)),
    db: AsyncSession = Depends(get_db),
):
    """Registra la clínica; queda PENDING hasta que un administrador la apruebe."""
    clinic, destination = await onboarding_service.onboard_clinic(db, user, data)
    return ClinicOnboardingResponse(
        clinic=ClinicResponse.model_validate(clinic),
        destination=destination,
    )
