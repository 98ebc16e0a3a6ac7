"""
Repositorios para operaciones sobre Supabase.

Cada repositorio maneja una tabla/entidad específica y devuelve filas
crudas (dict). La normalización a modelos la hace la capa de descubrimiento.
"""

from typing import Optional

import structlog

from vitrina.config import (
    BLOCKING_BOOKING_STATUSES,
    HISTORY_BOOKING_STATUSES,
    get_settings,
)
from vitrina.database.supabase_client import get_supabase_client, SupabaseClient
from vitrina.models import Favorite

logger = structlog.get_logger()

# Código de Postgres para violación de unicidad
UNIQUE_VIOLATION = "23505"


class BaseRepository:
    """Clase base para repositorios."""

    TABLE_SETTING = ""

    def __init__(self, client: Optional[SupabaseClient] = None, table: Optional[str] = None):
        self._client = client or get_supabase_client()
        self._table = table or getattr(get_settings(), self.TABLE_SETTING)

    @property
    def client(self) -> SupabaseClient:
        return self._client

    @property
    def table_name(self) -> str:
        return self._table

    def _query(self):
        return self.client.table(self._table)


class ListingRepository(BaseRepository):
    """Repositorio de listings."""

    TABLE_SETTING = "listings_table"

    def get_active(self) -> list[dict]:
        """Obtiene los listings con status == 'active' (filtro server-side)."""
        response = self._query().select("*").eq("status", "active").execute()
        return response.data

    def get_all(self) -> list[dict]:
        """Obtiene todos los listings, sin filtrar por status."""
        response = self._query().select("*").execute()
        return response.data

    def get_by_ids(self, listing_ids: list[str]) -> list[dict]:
        """Obtiene varios listings por ID."""
        if not listing_ids:
            return []
        response = self._query().select("*").in_("id", listing_ids).execute()
        return response.data


class BookingRepository(BaseRepository):
    """Repositorio de reservas."""

    TABLE_SETTING = "bookings_table"

    def get_active(self) -> list[dict]:
        """Obtiene las reservas que bloquean fechas (pending, confirmed)."""
        response = (
            self._query()
            .select("*")
            .in_("status", BLOCKING_BOOKING_STATUSES)
            .execute()
        )
        return response.data

    def get_guest_history(self, guest_id: str) -> list[dict]:
        """Obtiene las reservas confirmadas o completadas de un huésped."""
        response = (
            self._query()
            .select("*")
            .eq("guest_id", guest_id)
            .in_("status", HISTORY_BOOKING_STATUSES)
            .execute()
        )
        return response.data


class ReviewRepository(BaseRepository):
    """Repositorio de reseñas."""

    TABLE_SETTING = "reviews_table"

    def get_approved(self, listing_id: str) -> list[dict]:
        """Obtiene las reseñas aprobadas de un listing."""
        response = (
            self._query()
            .select("*")
            .eq("listing_id", listing_id)
            .eq("status", "approved")
            .execute()
        )
        return response.data


class FavoriteRepository(BaseRepository):
    """Repositorio de favoritos (un registro por par usuario/listing)."""

    TABLE_SETTING = "favorites_table"

    def find(self, user_id: str, listing_id: str) -> Optional[dict]:
        """Busca el favorito de un usuario para un listing."""
        response = (
            self._query()
            .select("*")
            .eq("user_id", user_id)
            .eq("listing_id", listing_id)
            .order("created_at")
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def create(self, favorite: Favorite) -> dict:
        """
        Inserta un favorito.

        Si la tabla tiene la restricción única (user_id, listing_id) y el
        registro ya existe, devuelve el existente en lugar de fallar.
        """
        try:
            response = self._query().insert(favorite.to_db_dict()).execute()
        except Exception as e:
            if getattr(e, "code", None) != UNIQUE_VIOLATION:
                raise
            logger.info(
                "Favorito ya existente (restricción única)",
                user_id=favorite.user_id,
                listing_id=favorite.listing_id,
            )
            return self.find(favorite.user_id, favorite.listing_id) or {}

        logger.info(
            "Favorito creado",
            user_id=favorite.user_id,
            listing_id=favorite.listing_id,
        )
        return response.data[0] if response.data else {}

    def delete(self, favorite_id: str) -> bool:
        """Elimina un favorito por ID."""
        response = self._query().delete().eq("id", favorite_id).execute()
        logger.info("Favorito eliminado", favorite_id=favorite_id)
        return len(response.data) > 0
