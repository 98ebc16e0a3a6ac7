"""
Modelo de Favorite: par (usuario, listing).
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Favorite(BaseModel):
    """La existencia del registro implica 'favorito'."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = Field(None, description="ID generado por Supabase")
    user_id: str = Field(..., validation_alias=AliasChoices("user_id", "userId"))
    listing_id: str = Field(..., validation_alias=AliasChoices("listing_id", "listingId"))
    listing_title: Optional[str] = Field(
        None, validation_alias=AliasChoices("listing_title", "listingTitle")
    )
    created_at: str = Field(
        default_factory=lambda: datetime.utcnow().isoformat(),
        validation_alias=AliasChoices("created_at", "createdAt"),
    )

    @field_validator("id", "user_id", "listing_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @classmethod
    def from_row(cls, row: Any) -> "Favorite":
        if isinstance(row, cls):
            return row
        return cls.model_validate(row)

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id"})
