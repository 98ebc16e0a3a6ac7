"""
Modelos de reseñas y rating agregado.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Review(BaseModel):
    """Reseña de un huésped. Solo las aprobadas cuentan para el promedio."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = Field(None)
    listing_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("listing_id", "listingId")
    )
    rating: Optional[int] = Field(None, description="1 a 5; None si es inválido")
    status: ReviewStatus = Field(ReviewStatus.PENDING)

    @field_validator("id", "listing_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("rating", mode="before")
    @classmethod
    def _coerce_rating(cls, value: Any) -> Optional[int]:
        try:
            rating = int(value)
        except (TypeError, ValueError):
            return None
        return rating if 1 <= rating <= 5 else None

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if isinstance(value, ReviewStatus):
            return value
        try:
            return ReviewStatus(str(value).strip().lower())
        except ValueError:
            return ReviewStatus.PENDING

    @classmethod
    def from_row(cls, row: Any) -> "Review":
        if isinstance(row, cls):
            return row
        return cls.model_validate(row)

    @property
    def counts(self) -> bool:
        return self.status == ReviewStatus.APPROVED and self.rating is not None


class RatingSummary(BaseModel):
    """Promedio y cantidad de reseñas aprobadas de un listing."""

    model_config = ConfigDict(frozen=True)

    average_rating: float = Field(0.0, ge=0.0, le=5.0)
    review_count: int = Field(0, ge=0)

    @property
    def has_ratings(self) -> bool:
        return self.review_count > 0
