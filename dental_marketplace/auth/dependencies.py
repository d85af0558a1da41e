"""
Dependencies de FastAPI para autenticación y control de acceso por rol.
"""

from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.jwt import TokenType, decode_token
from dental_marketplace.core.exceptions import (
    BadRequestException,
    CredentialsException,
    ForbiddenException,
)
from dental_marketplace.database import get_db
from dental_marketplace.models.clinic import Clinic
from dental_marketplace.models.patient import Patient
from dental_marketplace.models.user import User, UserRole

# ── Security scheme ──────────────────────────────────
security = HTTPBearer(auto_error=False)


# ── Token payload tipado ─────────────────────────────
class TokenPayload:
    """Datos extraídos del token JWT decodificado."""

    def __init__(self, payload: dict):
        self.user_id: UUID = UUID(payload["sub"])
        self.role: str = payload.get("role", "")
        self.token_type: str = payload.get("type", TokenType.ACCESS)


# ── Obtener usuario actual ───────────────────────────
async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency que:
    1. Decodifica el JWT del header Authorization
    2. Carga el usuario de la DB (con perfil de paciente y clínica)
    """
    if credentials is None:
        raise CredentialsException("No autenticado")

    try:
        payload = decode_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise CredentialsException("Token inválido o expirado")

    token_data = TokenPayload(payload)

    # Verificar que es un access token
    if token_data.token_type != TokenType.ACCESS:
        raise CredentialsException("Tipo de token inválido")

    result = await db.execute(
        select(User).where(
            User.id == token_data.user_id,
            User.is_active.is_(True),
        )
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise CredentialsException("Usuario no encontrado o inactivo")

    return user


# ── Factory de dependency con roles ──────────────────
def require_role(*allowed_roles: UserRole):
    """
    Factory que crea un dependency que verifica el rol del usuario.

    Uso:
        @router.get("/admin-only")
        async def admin_endpoint(user: User = Depends(require_role(UserRole.ADMIN))):
            ...
    """

    async def _check_role(
        user: User = Depends(get_current_user),
    ) -> User:
        if user.role not in allowed_roles:
            raise ForbiddenException(
                f"Se requiere uno de los roles: {', '.join(r.value for r in allowed_roles)}"
            )
        return user

    return _check_role


# ── Perfiles del usuario ─────────────────────────────
async def get_current_patient(
    user: User = Depends(require_role(UserRole.PATIENT)),
) -> Patient:
    """Perfil de paciente del usuario (400 si no completó el onboarding)."""
    if user.patient is None:
        raise BadRequestException("Complete su perfil de paciente antes de continuar")
    return user.patient


async def get_owner_clinic(
    user: User = Depends(require_role(UserRole.CLINIC_OWNER)),
) -> Clinic:
    """Clínica del dueño autenticado, en cualquier estado de verificación."""
    if user.clinic is None:
        raise ForbiddenException("Registre su clínica antes de continuar")
    return user.clinic


async def get_approved_clinic(
    clinic: Clinic = Depends(get_owner_clinic),
) -> Clinic:
    """Clínica del dueño, solo si ya fue aprobada por un administrador."""
    if not clinic.is_approved:
        raise ForbiddenException(
            f"La clínica está en estado {clinic.status.value}; requiere aprobación"
        )
    return clinic


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Usuario autenticado o None (sin sesión o token inválido)."""
    if credentials is None:
        return None
    try:
        return await get_current_user(credentials, db)
    except CredentialsException:
        return None
