"""
Schemas para reseñas de clínicas.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    clinic_id: UUID
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=2000)


class ReviewModeration(BaseModel):
    is_approved: bool


class ReviewResponse(BaseModel):
    id: UUID
    user_id: UUID
    clinic_id: UUID
    rating: int
    comment: str | None = None
    is_approved: bool
    author_name: str | None = None
    created_at: datetime
    updated_at: datetime


class ReviewSummary(BaseModel):
    """Promedio y cantidad de reseñas aprobadas."""
    average_rating: float | None = None
    total_reviews: int = 0


class ReviewListResponse(BaseModel):
    summary: ReviewSummary
    items: list[ReviewResponse]
    total: int
    page: int
    size: int
    pages: int
