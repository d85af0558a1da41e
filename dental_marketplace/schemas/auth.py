"""
Schemas de autenticación: registro, login, tokens y destino por rol.
"""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from dental_marketplace.models.clinic import ClinicStatus
from dental_marketplace.models.user import UserRole


# ── Registro / Login ─────────────────────────────────
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=2, max_length=200)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenData(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


# ── Usuario autenticado ──────────────────────────────
class UserMe(BaseModel):
    id: UUID
    email: str
    name: str
    role: UserRole
    has_patient_profile: bool = False
    clinic_id: UUID | None = None
    clinic_status: ClinicStatus | None = None


class AuthResponse(BaseModel):
    user: UserMe
    tokens: TokenData
    destination: str


class DestinationResponse(BaseModel):
    destination: str
