"""
Perfil del paciente autenticado.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.dependencies import get_current_patient
from dental_marketplace.database import get_db
from dental_marketplace.models.patient import Patient
from dental_marketplace.schemas.patient import PatientResponse, PatientUpdate
from dental_marketplace.services import patient_service

router = APIRouter()


@router.get("/profile", response_model=PatientResponse)
async def get_profile(patient: Patient = Depends(get_current_patient)):
    return patient_service.patient_to_response(patient)


@router.put("/profile", response_model=PatientResponse)
async def update_profile(
    data: PatientUpdate,
    patient: Patient = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    """Actualiza los datos de contacto y médicos del paciente."""
    return await patient_service.update_profile(db, patient, data)
