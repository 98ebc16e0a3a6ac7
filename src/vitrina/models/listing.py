"""
Modelo de Listing (alojamiento, experiencia o servicio publicado).

Los registros vienen del store con campos legacy poco tipados
(category/placeType/activityType/serviceType). Al ingerirlos se
normalizan y se calcula una sola vez el ListingKind.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class ListingKind(str, Enum):
    """Bucket de descubrimiento. Cada listing pertenece a exactamente uno."""

    HOME = "home"
    EXPERIENCE = "experience"
    SERVICE = "service"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: str) -> "ListingKind":
        """Acepta 'home', 'homes', 'Experience', etc."""
        normalized = (value or "").strip().lower().rstrip("s")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Categoría desconocida: {value!r}") from None


class ListingStatus(str, Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    INACTIVE = "inactive"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parsea un timestamp ISO. Devuelve None si no se puede interpretar."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    # Timestamps sin zona se asumen UTC para poder compararlos
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Listing(BaseModel):
    """
    Oferta publicada por un host.

    Acepta claves snake_case (columnas de Supabase) o camelCase
    (documentos legacy) indistintamente.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    # Identificación
    id: str = Field(..., description="Identificador opaco")
    host_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("host_id", "hostId")
    )

    # Clasificación legacy
    category: Optional[str] = Field(None, description="Tag legacy: resort, hotel, experience...")
    subcategory: Optional[str] = Field(None)
    place_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("place_type", "placeType")
    )
    activity_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("activity_type", "activityType")
    )
    service_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("service_type", "serviceType")
    )

    # Derivado en ingesta (ver discovery.classifier)
    kind: ListingKind = Field(ListingKind.HOME, description="Bucket calculado")

    # Capacidad y estado
    max_guests: int = Field(
        1, ge=1, validation_alias=AliasChoices("max_guests", "maxGuests")
    )
    status: ListingStatus = Field(ListingStatus.ACTIVE)

    # Texto para búsqueda
    title: str = Field("")
    location: str = Field("")
    description: str = Field("")

    # Usados por las recomendaciones
    price: Optional[float] = Field(None)
    amenities: list[str] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)

    created_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )

    @field_validator("id", "host_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("max_guests", mode="before")
    @classmethod
    def _coerce_max_guests(cls, value: Any) -> int:
        try:
            guests = int(value)
        except (TypeError, ValueError):
            return 1
        return guests if guests >= 1 else 1

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if value is None:
            return ListingStatus.ACTIVE
        if isinstance(value, ListingStatus):
            return value
        try:
            return ListingStatus(str(value).strip().lower())
        except ValueError:
            return ListingStatus.INACTIVE

    @field_validator("title", "location", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Optional[float]:
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @field_validator("amenities", "services", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(item) for item in value if item]

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @model_validator(mode="after")
    def _assign_kind(self) -> "Listing":
        from vitrina.discovery.classifier import classify

        # Siempre se recalcula: el bucket nunca se toma del store
        self.__dict__["kind"] = classify(self)
        return self

    @classmethod
    def from_row(cls, row: Any) -> "Listing":
        """Construye un Listing desde una fila del store (dict) o lo devuelve tal cual."""
        if isinstance(row, cls):
            return row
        return cls.model_validate(row)

    @property
    def is_active(self) -> bool:
        return self.status == ListingStatus.ACTIVE
