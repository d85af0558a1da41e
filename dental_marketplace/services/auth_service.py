"""
Servicio de autenticación: registro, login, refresh y datos del usuario actual.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.jwt import (
    TokenType,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from dental_marketplace.auth.policy import resolve_destination
from dental_marketplace.core.exceptions import ConflictException, CredentialsException
from dental_marketplace.core.security import hash_password, verify_password
from dental_marketplace.models.user import User, UserRole
from dental_marketplace.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenData,
    UserMe,
)

logger = logging.getLogger(__name__)


def _issue_tokens(user: User) -> TokenData:
    return TokenData(
        access_token=create_access_token(user.id, user.role.value),
        refresh_token=create_refresh_token(user.id),
    )


def user_to_me(user: User) -> UserMe:
    """Usuario con su estado de onboarding."""
    return UserMe(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        has_patient_profile=user.patient is not None,
        clinic_id=user.clinic.id if user.clinic is not None else None,
        clinic_status=user.clinic.status if user.clinic is not None else None,
    )


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=user_to_me(user),
        tokens=_issue_tokens(user),
        destination=resolve_destination(user),
    )


async def _get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def register(db: AsyncSession, data: RegisterRequest) -> AuthResponse:
    """
    Crea una cuenta nueva sin rol asignado.
    Retorna tokens para auto-login; el destino es siempre /onboarding.
    """
    if await _get_user_by_email(db, data.email):
        raise ConflictException("Ya existe un usuario con ese email")

    user = User(
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        name=data.name.strip(),
        role=UserRole.UNASSIGNED,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user, ["patient", "clinic"])

    logger.info("Usuario registrado: user_id=%s", user.id)
    return _auth_response(user)


async def login(db: AsyncSession, data: LoginRequest) -> AuthResponse:
    """Autentica un usuario con email y contraseña."""
    user = await _get_user_by_email(db, data.email)

    if not user or not user.is_active:
        logger.warning("Login fallido: usuario no encontrado para email=%s", data.email)
        raise CredentialsException("Email o contraseña incorrectos")

    if not verify_password(data.password, user.hashed_password):
        logger.warning("Login fallido: contraseña incorrecta para user_id=%s", user.id)
        raise CredentialsException("Email o contraseña incorrectos")

    # Actualizar último login
    user.last_login = datetime.now(timezone.utc)
    await db.flush()

    return _auth_response(user)


async def refresh_tokens(db: AsyncSession, refresh_token: str) -> TokenData:
    """Emite un nuevo par de tokens a partir de un refresh token válido."""
    try:
        payload = decode_token(refresh_token)
    except jwt.InvalidTokenError:
        raise CredentialsException("Refresh token inválido o expirado")

    if payload.get("type") != TokenType.REFRESH:
        raise CredentialsException("Tipo de token inválido")

    result = await db.execute(
        select(User).where(
            User.id == UUID(payload["sub"]),
            User.is_active.is_(True),
        )
    )
    user = result.scalar_one_or_none()
    if not user:
        raise CredentialsException("Usuario no encontrado o inactivo")

    return _issue_tokens(user)
