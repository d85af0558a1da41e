"""
Reseñas de pacientes. Solo quien tuvo una cita COMPLETED puede reseñar;
la reseña queda oculta hasta que un administrador la apruebe.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.dependencies import require_role
from dental_marketplace.database import get_db
from dental_marketplace.models.user import User, UserRole
from dental_marketplace.schemas.review import ReviewCreate, ReviewResponse
from dental_marketplace.services import review_service

router = APIRouter()


@router.post("", response_model=ReviewResponse, status_code=201)
async def submit_review(
    data: ReviewCreate,
    user: User = Depends(require_role(UserRole.PATIENT)),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.submit_review(db, user, data)
