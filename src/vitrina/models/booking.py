"""
Modelo de Booking (reserva contra un único listing).
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from vitrina.config import BLOCKING_BOOKING_STATUSES


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


def parse_date(value: Any) -> Optional[date]:
    """Acepta date, datetime o string ISO ('2024-03-10' o con hora)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


class Booking(BaseModel):
    """
    Reserva. Referencia débil al listing: este subsistema nunca la borra.

    Los registros incompletos (sin fechas o sin listing) se aceptan en la
    ingesta; es el calculador de disponibilidad quien los descarta.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = Field(None)
    listing_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("listing_id", "listingId")
    )
    guest_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("guest_id", "guestId")
    )
    check_in: Optional[date] = Field(
        None, validation_alias=AliasChoices("check_in", "checkIn")
    )
    check_out: Optional[date] = Field(
        None, validation_alias=AliasChoices("check_out", "checkOut")
    )
    status: Optional[BookingStatus] = Field(None, description="None si falta o es desconocido")

    @field_validator("id", "listing_id", "guest_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        if value == "":
            return None
        return value

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Optional[date]:
        return parse_date(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if value is None or isinstance(value, BookingStatus):
            return value
        try:
            return BookingStatus(str(value).strip().lower())
        except ValueError:
            # Estado desconocido: no bloquea fechas
            return None

    @classmethod
    def from_row(cls, row: Any) -> "Booking":
        if isinstance(row, cls):
            return row
        return cls.model_validate(row)

    @property
    def blocks_availability(self) -> bool:
        return self.status is not None and self.status.value in BLOCKING_BOOKING_STATUSES

    @property
    def is_complete(self) -> bool:
        """Tiene listing, ambas fechas y check_in <= check_out."""
        return (
            bool(self.listing_id)
            and self.check_in is not None
            and self.check_out is not None
            and self.check_in <= self.check_out
        )
