"""
Adaptador del store de listings.

Lee snapshots de listings activos y reservas que bloquean fechas.
Ante fallas del store nunca lanza: devuelve un snapshot vacío con el
error adjunto para que la UI muestre un aviso.
"""

from dataclasses import dataclass, field
from typing import Callable, Generic, Hashable, Optional, TypeVar

import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from vitrina.config import get_settings
from vitrina.database import BookingRepository, ListingRepository
from vitrina.discovery.channels import PollingFeed, Subscription
from vitrina.errors import StoreError
from vitrina.models import Booking, Listing

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass
class StoreSnapshot(Generic[T]):
    """Resultado de una lectura: items + error opcional."""

    items: list[T] = field(default_factory=list)
    error: Optional[StoreError] = None
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class ListingStore:
    """
    Fachada de lectura sobre los repositorios de listings y reservas.

    Las lecturas se reintentan con backoff exponencial; sin timeout,
    una red lenta solo demora el resultado.
    """

    def __init__(
        self,
        listing_repo: Optional[ListingRepository] = None,
        booking_repo: Optional[BookingRepository] = None,
        retry_attempts: Optional[int] = None,
        retry_wait_min: Optional[float] = None,
        retry_wait_max: Optional[float] = None,
    ):
        settings = get_settings()
        self.listing_repo = listing_repo or ListingRepository()
        self.booking_repo = booking_repo or BookingRepository()
        self.retry_attempts = retry_attempts or settings.store_retry_attempts
        self.retry_wait_min = (
            settings.store_retry_wait_min if retry_wait_min is None else retry_wait_min
        )
        self.retry_wait_max = (
            settings.store_retry_wait_max if retry_wait_max is None else retry_wait_max
        )
        self.listing_poll_interval = settings.listing_poll_interval

    async def _read(self, operation: str, func: Callable[[], list[dict]]) -> list[dict]:
        """Ejecuta una lectura con reintentos. Lanza StoreError al agotarlos."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(
                    multiplier=1, min=self.retry_wait_min, max=self.retry_wait_max
                ),
                reraise=True,
            ):
                with attempt:
                    return func() or []
        except Exception as e:
            raise StoreError(operation, e) from e
        return []

    async def fetch_active_listings(self) -> StoreSnapshot[Listing]:
        """
        Obtiene los listings activos.

        Si la consulta filtrada falla, reintenta sin filtro y conserva los
        registros con status 'active' o sin status.
        """
        try:
            rows = await self._read("listings.get_active", self.listing_repo.get_active)
        except StoreError as e:
            logger.warning("Fallo la consulta de listings activos", error=str(e))
            try:
                rows = await self._read("listings.get_all", self.listing_repo.get_all)
            except StoreError:
                logger.error("No se pudieron cargar los listings", error=str(e))
                return StoreSnapshot(items=[], error=e)
            rows = [r for r in rows if r.get("status") in (None, "", "active")]
            logger.info("Listings obtenidos sin filtro de status", count=len(rows))

        listings: list[Listing] = []
        skipped = 0
        for row in rows:
            try:
                listing = Listing.from_row(row)
            except ValueError as e:
                skipped += 1
                logger.warning("Listing malformado ignorado", listing_id=row.get("id"), error=str(e))
                continue
            if listing.is_active:
                listings.append(listing)

        logger.info("Listings activos cargados", count=len(listings), skipped=skipped)
        return StoreSnapshot(items=listings, skipped=skipped)

    async def fetch_active_bookings(self) -> StoreSnapshot[Booking]:
        """Obtiene las reservas pending/confirmed."""
        try:
            rows = await self._read("bookings.get_active", self.booking_repo.get_active)
        except StoreError as e:
            logger.error("No se pudieron cargar las reservas", error=str(e))
            return StoreSnapshot(items=[], error=e)

        bookings: list[Booking] = []
        skipped = 0
        for row in rows:
            try:
                booking = Booking.from_row(row)
            except ValueError:
                skipped += 1
                continue
            if booking.blocks_availability:
                bookings.append(booking)

        logger.info("Reservas activas cargadas", count=len(bookings), skipped=skipped)
        return StoreSnapshot(items=bookings, skipped=skipped)

    def listing_feed(self, poll_interval: Optional[float] = None) -> "ListingFeed":
        return ListingFeed(self, poll_interval or self.listing_poll_interval)

    def subscribe(
        self,
        callback: Callable[[list[Listing]], None],
        poll_interval: Optional[float] = None,
    ) -> tuple["ListingFeed", Subscription]:
        """
        Suscribe a actualizaciones de listings activos y arranca el polling.

        Requiere un event loop corriendo. El feed devuelto debe cerrarse
        con close() para liberar la tarea.
        """
        feed = self.listing_feed(poll_interval)
        subscription = feed.subscribe(callback)
        feed.start()
        return feed, subscription


class ListingFeed(PollingFeed[list[Listing]]):
    """Publica la colección de listings activos cada vez que cambia."""

    def __init__(self, store: ListingStore, poll_interval: float):
        self._store = store
        super().__init__(name="listings", poll_interval=poll_interval)

    async def _poll(self) -> list[Listing]:
        snapshot = await self._store.fetch_active_listings()
        if snapshot.error is not None:
            raise snapshot.error
        return snapshot.items

    def _signature(self, value: list[Listing]) -> Hashable:
        # Orden irrelevante: solo importa el contenido
        return frozenset(listing.model_dump_json() for listing in value)
