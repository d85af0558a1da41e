"""
Reseñas de clínicas.
Solo pacientes con una cita COMPLETED en la clínica pueden reseñarla; una
reseña por (usuario, clínica). Reenviar la reseña la actualiza y la vuelve
a dejar pendiente de moderación.
"""

import logging
import math
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from dental_marketplace.core.exceptions import ForbiddenException, NotFoundException
from dental_marketplace.models.appointment import Appointment, AppointmentStatus
from dental_marketplace.models.clinic import Clinic, ClinicStatus
from dental_marketplace.models.review import Review
from dental_marketplace.models.user import User
from dental_marketplace.schemas.review import (
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewSummary,
)

logger = logging.getLogger(__name__)


def review_to_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        user_id=review.user_id,
        clinic_id=review.clinic_id,
        rating=review.rating,
        comment=review.comment,
        is_approved=review.is_approved,
        author_name=review.user.name if review.user else None,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


async def _ensure_public_clinic(db: AsyncSession, clinic_id: UUID) -> None:
    result = await db.execute(
        select(Clinic.id).where(
            Clinic.id == clinic_id,
            Clinic.status == ClinicStatus.APPROVED,
        )
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundException("Clínica", "Clínica no encontrada")


async def _reload(db: AsyncSession, review_id: UUID) -> Review:
    result = await db.execute(
        select(Review)
        .options(joinedload(Review.user))
        .where(Review.id == review_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_summary(db: AsyncSession, clinic_id: UUID) -> ReviewSummary:
    """Promedio y total de reseñas aprobadas de la clínica."""
    result = await db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.clinic_id == clinic_id,
            Review.is_approved.is_(True),
        )
    )
    average, total = result.one()
    return ReviewSummary(
        average_rating=round(float(average), 2) if average is not None else None,
        total_reviews=total or 0,
    )


async def submit_review(
    db: AsyncSession,
    user: User,
    data: ReviewCreate,
) -> ReviewResponse:
    """Crea o actualiza la reseña del usuario para la clínica."""
    await _ensure_public_clinic(db, data.clinic_id)

    completed = await db.execute(
        select(Appointment.id)
        .where(
            Appointment.user_id == user.id,
            Appointment.clinic_id == data.clinic_id,
            Appointment.status == AppointmentStatus.COMPLETED,
        )
        .limit(1)
    )
    if completed.scalar_one_or_none() is None:
        raise ForbiddenException(
            "Solo puede reseñar clínicas donde tuvo una cita completada"
        )

    result = await db.execute(
        select(Review).where(
            Review.user_id == user.id,
            Review.clinic_id == data.clinic_id,
        )
    )
    review = result.scalar_one_or_none()

    if review:
        review.rating = data.rating
        review.comment = data.comment
        review.is_approved = False
    else:
        review = Review(
            user_id=user.id,
            clinic_id=data.clinic_id,
            rating=data.rating,
            comment=data.comment,
            is_approved=False,
        )
        db.add(review)
    await db.flush()

    logger.info("Reseña guardada: clinic_id=%s user_id=%s", data.clinic_id, user.id)
    return review_to_response(await _reload(db, review.id))


async def list_clinic_reviews(
    db: AsyncSession,
    clinic_id: UUID,
    *,
    page: int = 1,
    size: int = 20,
) -> ReviewListResponse:
    """Reseñas aprobadas de una clínica pública."""
    await _ensure_public_clinic(db, clinic_id)

    query = (
        select(Review)
        .options(joinedload(Review.user))
        .where(Review.clinic_id == clinic_id, Review.is_approved.is_(True))
    )
    count_query = select(func.count()).select_from(
        query.with_only_columns(Review.id).subquery()
    )
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * size
    query = query.order_by(Review.created_at.desc()).offset(offset).limit(size)
    result = await db.execute(query)

    return ReviewListResponse(
        summary=await get_summary(db, clinic_id),
        items=[review_to_response(r) for r in result.scalars().unique().all()],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0,
    )


async def moderate_review(
    db: AsyncSession,
    review_id: UUID,
    is_approved: bool,
) -> ReviewResponse:
    """Aprueba o retira una reseña (administración)."""
    result = await db.execute(select(Review).where(Review.id == review_id))
    review = result.scalar_one_or_none()
    if not review:
        raise NotFoundException("Reseña", "Reseña no encontrada")

    review.is_approved = is_approved
    await db.flush()
    return review_to_response(await _reload(db, review.id))
