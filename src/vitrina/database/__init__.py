"""
Módulo de base de datos.

Provee acceso a Supabase y lecturas/escrituras por tabla.
"""

from vitrina.database.supabase_client import get_supabase_client, SupabaseClient
from vitrina.database.repositories import (
    ListingRepository,
    BookingRepository,
    ReviewRepository,
    FavoriteRepository,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "ListingRepository",
    "BookingRepository",
    "ReviewRepository",
    "FavoriteRepository",
]
