"""
Servicio de descubrimiento: fetch + pipeline en una sola llamada.
"""

from dataclasses import dataclass, field
from typing import Optional

import structlog

from vitrina.config import STORE_UNAVAILABLE_MESSAGE, get_settings
from vitrina.discovery.pipeline import compute_visible_listings
from vitrina.discovery.store import ListingStore
from vitrina.models import Listing, SearchCriteria

logger = structlog.get_logger()


@dataclass
class DiscoveryResult:
    """Listings visibles + aviso opcional si el store falló."""

    listings: list[Listing] = field(default_factory=list)
    error: Optional[str] = None
    total_active: int = 0

    @property
    def degraded(self) -> bool:
        return self.error is not None


class DiscoveryService:
    """
    Orquesta la búsqueda de un visitante.

    Flujo:
    1. Obtener listings activos y reservas pending/confirmed
    2. Aplicar el pipeline de filtros con los criterios
    3. Si alguna lectura falló, devolver lo que haya con un aviso
    """

    def __init__(self, store: Optional[ListingStore] = None):
        self.settings = get_settings()
        self.store = store or ListingStore()

    async def search(self, criteria: SearchCriteria) -> DiscoveryResult:
        listings_snapshot = await self.store.fetch_active_listings()

        # Sin fechas no hace falta leer reservas
        bookings = []
        bookings_error = None
        if criteria.has_dates:
            bookings_snapshot = await self.store.fetch_active_bookings()
            bookings = bookings_snapshot.items
            bookings_error = bookings_snapshot.error

        visible = compute_visible_listings(
            listings_snapshot.items,
            bookings,
            criteria,
            inclusive_checkout=self.settings.inclusive_checkout,
        )

        error = None
        if listings_snapshot.error is not None or bookings_error is not None:
            error = STORE_UNAVAILABLE_MESSAGE

        logger.info(
            "Búsqueda completada",
            category=criteria.category.value,
            query=criteria.search_query,
            guests=criteria.guests,
            visible=len(visible),
            degraded=error is not None,
        )

        return DiscoveryResult(
            listings=visible,
            error=error,
            total_active=len(listings_snapshot.items),
        )
