"""
Política de acceso por rol.

Una sola tabla de despacho decide a qué página aterriza cada usuario
según su rol y su estado de onboarding, y qué áreas puede visitar.
"""

from dataclasses import dataclass
from typing import Callable

from dental_marketplace.models.clinic import ClinicStatus
from dental_marketplace.models.user import User, UserRole

LOGIN = "/login"
ONBOARDING = "/onboarding"
PATIENT_DASHBOARD = "/patient/dashboard"
CLINIC_VERIFICATION = "/clinic/verification"
CLINIC_DASHBOARD = "/clinic/dashboard"
ADMIN_DASHBOARD = "/admin/dashboard"


@dataclass(frozen=True)
class OnboardingState:
    """Estado de onboarding del usuario autenticado."""
    has_patient_profile: bool = False
    clinic_status: ClinicStatus | None = None

    @classmethod
    def from_user(cls, user: User) -> "OnboardingState":
        return cls(
            has_patient_profile=user.patient is not None,
            clinic_status=user.clinic.status if user.clinic is not None else None,
        )


def _patient_destination(state: OnboardingState) -> str:
    return PATIENT_DASHBOARD if state.has_patient_profile else ONBOARDING


def _clinic_owner_destination(state: OnboardingState) -> str:
    if state.clinic_status is None:
        return ONBOARDING
    if state.clinic_status != ClinicStatus.APPROVED:
        return CLINIC_VERIFICATION
    return CLINIC_DASHBOARD


DESTINATIONS: dict[UserRole, Callable[[OnboardingState], str]] = {
    UserRole.UNASSIGNED: lambda state: ONBOARDING,
    UserRole.PATIENT: _patient_destination,
    UserRole.CLINIC_OWNER: _clinic_owner_destination,
    UserRole.ADMIN: lambda state: ADMIN_DASHBOARD,
}

# Área → página que debe resolver el usuario para entrar
AREA_DESTINATIONS: dict[str, str] = {
    "patient": PATIENT_DASHBOARD,
    "clinic": CLINIC_DASHBOARD,
    "admin": ADMIN_DASHBOARD,
}


def resolve_destination(user: User | None, state: OnboardingState | None = None) -> str:
    """Página a la que debe ir el usuario. Sin sesión → /login."""
    if user is None:
        return LOGIN
    if state is None:
        state = OnboardingState.from_user(user)
    return DESTINATIONS[user.role](state)


def can_access(user: User | None, state: OnboardingState | None, area: str) -> bool:
    """
    True si el usuario puede entrar al área ('patient', 'clinic', 'admin').
    Un área es accesible solo si la política envía al usuario a su página principal.
    """
    target = AREA_DESTINATIONS.get(area)
    if target is None:
        return False
    return resolve_destination(user, state) == target
