"""
Configuración centralizada del sistema.
Carga variables de entorno y define settings globales.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Encontrar la raíz del proyecto (donde está el .env)
# config.py -> vitrina/ -> src/ -> raíz del proyecto
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="VITRINA_",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    # Opcionales: solo el cliente de Supabase las exige
    supabase_url: Optional[str] = Field(None, description="URL del proyecto Supabase")
    supabase_key: Optional[str] = Field(None, description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # Tablas
    listings_table: str = Field("listings", description="Tabla de alojamientos")
    bookings_table: str = Field("bookings", description="Tabla de reservas")
    reviews_table: str = Field("reviews", description="Tabla de reseñas")
    favorites_table: str = Field("favorites", description="Tabla de favoritos")

    # Disponibilidad
    inclusive_checkout: bool = Field(
        True,
        description=(
            "Si el día de check-out cuenta como ocupado. "
            "False = checkout estilo hotel (exclusivo)"
        ),
    )

    # Lecturas del store
    store_retry_attempts: int = Field(
        3, ge=1, description="Intentos por lectura antes de degradar a vacío"
    )
    store_retry_wait_min: float = Field(1.0, ge=0.0, description="Backoff mínimo (segundos)")
    store_retry_wait_max: float = Field(8.0, ge=0.0, description="Backoff máximo (segundos)")

    # Suscripciones
    review_poll_interval: float = Field(
        15.0, gt=0.0, description="Intervalo de refresco de reseñas (segundos)"
    )
    listing_poll_interval: float = Field(
        30.0, gt=0.0, description="Intervalo de refresco de alojamientos (segundos)"
    )

    # Recomendaciones
    recommendation_limit: int = Field(
        6, ge=1, description="Máximo de recomendaciones por huésped"
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


# Constantes del sistema
HOME_CATEGORIES = ["place", "resort", "hotel", "transient"]

# Reservas que bloquean fechas
BLOCKING_BOOKING_STATUSES = ["pending", "confirmed"]

# Reservas que cuentan como historial del huésped
HISTORY_BOOKING_STATUSES = ["confirmed", "completed"]

STORE_UNAVAILABLE_MESSAGE = "No se pudieron cargar los alojamientos. Intentá de nuevo más tarde."
