"""
Endpoints de autenticación: registro, login, refresh, usuario actual
y página de destino según rol.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.dependencies import get_current_user, get_optional_user
from dental_marketplace.auth.policy import resolve_destination
from dental_marketplace.database import get_db
from dental_marketplace.models.user import User
from dental_marketplace.schemas.auth import (
    AuthResponse,
    DestinationResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenData,
    UserMe,
)
from dental_marketplace.services import auth_service

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Crea una cuenta sin rol asignado.
    No requiere autenticación; el siguiente paso es el onboarding.
    """
    return await auth_service.register(db, data)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Autentica un usuario con email y contraseña."""
    return await auth_service.login(db, data)


@router.post("/refresh", response_model=TokenData)
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Emite un nuevo par de tokens a partir del refresh token."""
    return await auth_service.refresh_tokens(db, data.refresh_token)


@router.get("/me", response_model=UserMe)
async def me(user: User = Depends(get_current_user)):
    """Usuario autenticado con su rol y estado de onboarding."""
    return auth_service.user_to_me(user)


@router.get("/destination", response_model=DestinationResponse)
async def destination(user: User | None = Depends(get_optional_user)):
    """Página a la que debe ir el usuario según su rol y onboarding."""
    return DestinationResponse(destination=resolve_destination(user))
