"""
Criterios de búsqueda que ingresa el visitante.
"""

from datetime import date
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from vitrina.models.booking import parse_date
from vitrina.models.listing import ListingKind


class SearchCriteria(BaseModel):
    """Categoría + texto + huéspedes + rango de fechas opcional."""

    model_config = ConfigDict(frozen=True)

    category: ListingKind = Field(ListingKind.HOME, description="Bucket seleccionado")
    search_query: str = Field(
        "",
        validation_alias=AliasChoices("search_query", "searchQuery"),
        description="Texto libre (título, ubicación, descripción)",
    )
    guests: int = Field(1, ge=1, description="Cantidad de huéspedes")
    check_in: Optional[date] = Field(None, validation_alias=AliasChoices("check_in", "checkIn"))
    check_out: Optional[date] = Field(
        None, validation_alias=AliasChoices("check_out", "checkOut")
    )

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ListingKind.parse(value)
        return value

    @field_validator("search_query", mode="before")
    @classmethod
    def _coerce_query(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Optional[date]:
        return parse_date(value)

    @model_validator(mode="after")
    def _check_range(self) -> "SearchCriteria":
        if self.has_dates and self.check_out < self.check_in:
            raise ValueError("check_out no puede ser anterior a check_in")
        return self

    @property
    def has_dates(self) -> bool:
        return self.check_in is not None and self.check_out is not None

    @property
    def normalized_query(self) -> str:
        return self.search_query.strip().casefold()
