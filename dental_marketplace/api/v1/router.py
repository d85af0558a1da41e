"""
Router principal de la API v1.
Agrupa todos los sub-routers de la versión 1.
"""

from fastapi import APIRouter

from dental_marketplace.api.v1.admin import router as admin_router
from dental_marketplace.api.v1.appointments import router as appointments_router
from dental_marketplace.api.v1.auth import router as auth_router
from dental_marketplace.api.v1.clinic import router as clinic_router
from dental_marketplace.api.v1.clinics import router as clinics_router
from dental_marketplace.api.v1.notifications import router as notifications_router
from dental_marketplace.api.v1.onboarding import router as onboarding_router
from dental_marketplace.api.v1.patient import router as patient_router
from dental_marketplace.api.v1.reviews import router as reviews_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    auth_router,
    prefix="/auth",
    tags=["Autenticación"],
)

api_v1_router.include_router(
    onboarding_router,
    prefix="/onboarding",
    tags=["Onboarding"],
)

api_v1_router.include_router(
    patient_router,
    prefix="/patient",
    tags=["Paciente"],
)

api_v1_router.include_router(
    clinics_router,
    prefix="/clinics",
    tags=["Catálogo de clínicas"],
)

api_v1_router.include_router(
    clinic_router,
    prefix="/clinic",
    tags=["Clínica"],
)

api_v1_router.include_router(
    appointments_router,
    prefix="/appointments",
    tags=["Citas"],
)

api_v1_router.include_router(
    notifications_router,
    prefix="/notifications",
    tags=["Notificaciones"],
)

api_v1_router.include_router(
    reviews_router,
    prefix="/reviews",
    tags=["Reseñas"],
)

api_v1_router.include_router(
    admin_router,
    prefix="/admin",
    tags=["Administración"],
)
