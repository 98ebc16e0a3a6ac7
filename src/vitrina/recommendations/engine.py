"""
Motor de recomendaciones por historial de reservas.

Infiere las preferencias de un huésped a partir de los listings que ya
reservó (confirmadas o completadas) y puntúa los listings activos:

- Categoría: 35
- Subcategoría: 25
- placeType / serviceType / activityType: 20 cada uno
- Ubicación: 18
- Precio similar al promedio: hasta 15
- Amenities en común: hasta 12
- Servicios en común: hasta 8
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import structlog

from vitrina.config import HOME_CATEGORIES, get_settings
from vitrina.database import BookingRepository, ListingRepository
from vitrina.discovery.store import ListingStore
from vitrina.models import Booking, Listing

logger = structlog.get_logger()

CATEGORY_WEIGHT = 35
SUBCATEGORY_WEIGHT = 25
TYPE_WEIGHT = 20
LOCATION_WEIGHT = 18
PRICE_WEIGHT = 15
AMENITIES_WEIGHT = 12
SERVICES_WEIGHT = 8


@dataclass
class GuestPreferences:
    """Preferencias inferidas del historial de un huésped."""

    top_category: Optional[str] = None
    top_subcategory: Optional[str] = None
    top_place_type: Optional[str] = None
    top_service_type: Optional[str] = None
    top_activity_type: Optional[str] = None
    top_location: Optional[str] = None
    price_min: float = 0.0
    price_max: float = 0.0
    price_avg: float = 0.0
    amenities: set[str] = field(default_factory=set)
    services: set[str] = field(default_factory=set)
    booked_listing_ids: set[str] = field(default_factory=set)


@dataclass
class RecommendationResult:
    """Listing recomendado con su puntaje y los motivos."""

    listing: Listing
    score: float
    reasons: list[str] = field(default_factory=list)


def _top(counts: dict[str, int]) -> Optional[str]:
    # Empates: gana el último visto
    best = None
    for key, count in counts.items():
        if best is None or count >= counts[best]:
            best = key
    return best


def _count(counts: dict[str, int], value: Optional[str]) -> None:
    if value:
        counts[value] = counts.get(value, 0) + 1


def build_preferences(
    bookings: Iterable[Booking], booked_listings: Iterable[Listing]
) -> GuestPreferences:
    """Arma las preferencias a partir de las reservas y sus listings."""
    prefs = GuestPreferences()
    for booking in bookings:
        if booking.listing_id:
            prefs.booked_listing_ids.add(booking.listing_id)

    categories: dict[str, int] = {}
    subcategories: dict[str, int] = {}
    place_types: dict[str, int] = {}
    service_types: dict[str, int] = {}
    activity_types: dict[str, int] = {}
    locations: dict[str, int] = {}
    prices: list[float] = []

    for listing in booked_listings:
        _count(categories, listing.category)
        _count(subcategories, listing.subcategory)
        _count(place_types, listing.place_type)
        _count(service_types, listing.service_type)
        _count(activity_types, listing.activity_type)

        for part in listing.location.split(","):
            _count(locations, part.strip())

        if listing.price is not None and listing.price > 0:
            prices.append(listing.price)

        prefs.amenities.update(listing.amenities)
        prefs.services.update(listing.services)

    prefs.top_category = _top(categories)
    prefs.top_subcategory = _top(subcategories)
    prefs.top_place_type = _top(place_types)
    prefs.top_service_type = _top(service_types)
    prefs.top_activity_type = _top(activity_types)
    prefs.top_location = _top(locations)

    if prices:
        prefs.price_min = min(prices)
        prefs.price_max = max(prices)
        prefs.price_avg = sum(prices) / len(prices)

    return prefs


def _category_label(category: str) -> str:
    return "Home" if category.lower() in HOME_CATEGORIES else category


def score_listing(listing: Listing, prefs: GuestPreferences) -> tuple[float, list[str]]:
    """Puntúa un listing contra las preferencias. Devuelve (score, motivos)."""
    score = 0.0
    reasons: list[str] = []

    if prefs.top_category and listing.category == prefs.top_category:
        score += CATEGORY_WEIGHT
        reasons.append(f"Misma categoría que tus reservas ({_category_label(prefs.top_category)})")

    if prefs.top_subcategory and listing.subcategory == prefs.top_subcategory:
        score += SUBCATEGORY_WEIGHT
        reasons.append(f"Mismo tipo que tus reservas anteriores ({prefs.top_subcategory})")

    if prefs.top_place_type and listing.place_type == prefs.top_place_type:
        score += TYPE_WEIGHT
        reasons.append(f"Tipo de lugar preferido ({prefs.top_place_type})")

    if prefs.top_service_type and listing.service_type == prefs.top_service_type:
        score += TYPE_WEIGHT
        reasons.append(f"Servicio preferido ({prefs.top_service_type})")

    if prefs.top_activity_type and listing.activity_type == prefs.top_activity_type:
        score += TYPE_WEIGHT
        reasons.append(f"Actividad preferida ({prefs.top_activity_type})")

    if prefs.top_location and prefs.top_location in listing.location:
        score += LOCATION_WEIGHT
        reasons.append(f"Ubicación frecuente ({prefs.top_location})")

    if listing.price and prefs.price_avg > 0:
        price_diff = abs(listing.price - prefs.price_avg)
        price_range = (prefs.price_max - prefs.price_min) or 1
        price_score = max(0.0, PRICE_WEIGHT * (1 - price_diff / price_range))
        if price_score > 0:
            score += price_score
            reasons.append("Precio similar a tus reservas")

    if listing.amenities and prefs.amenities:
        matching = sum(1 for a in listing.amenities if a in prefs.amenities)
        score += matching / len(prefs.amenities) * AMENITIES_WEIGHT

    if listing.services and prefs.services:
        matching = sum(1 for s in listing.services if s in prefs.services)
        score += matching / len(prefs.services) * SERVICES_WEIGHT

    return score, reasons


def rank_listings(
    candidates: Iterable[Listing],
    prefs: GuestPreferences,
    limit: int,
) -> list[RecommendationResult]:
    """Puntúa, descarta score 0 y ya reservados, ordena y corta en limit."""
    results = []
    for listing in candidates:
        if listing.id in prefs.booked_listing_ids:
            continue
        score, reasons = score_listing(listing, prefs)
        if score > 0:
            results.append(RecommendationResult(listing=listing, score=score, reasons=reasons))

    results.sort(key=lambda r: r.score, reverse=True)
    return results[:limit]


class RecommendationEngine:
    """
    Recomendaciones para un huésped.

    Flujo:
    1. Obtener reservas confirmadas/completadas del huésped
    2. Cargar los listings reservados e inferir preferencias
    3. Puntuar los listings activos no reservados
    Ante cualquier falla del store devuelve lista vacía.
    """

    def __init__(
        self,
        store: Optional[ListingStore] = None,
        booking_repo: Optional[BookingRepository] = None,
        listing_repo: Optional[ListingRepository] = None,
    ):
        self.settings = get_settings()
        self.store = store or ListingStore()
        self.booking_repo = booking_repo or self.store.booking_repo
        self.listing_repo = listing_repo or self.store.listing_repo

    def _to_listings(self, rows: Iterable[Any]) -> list[Listing]:
        listings = []
        for row in rows:
            try:
                listings.append(Listing.from_row(row))
            except ValueError:
                continue
        return listings

    async def recommend_for_guest(
        self, guest_id: str, limit: Optional[int] = None
    ) -> list[RecommendationResult]:
        """
        Recomienda listings a un huésped según su historial.

        Args:
            guest_id: ID del huésped
            limit: Máximo de resultados (None = settings)

        Returns:
            Lista de RecommendationResult ordenada por score
        """
        limit = limit or self.settings.recommendation_limit

        try:
            history_rows = self.booking_repo.get_guest_history(guest_id)
        except Exception as e:
            logger.error("Error obteniendo historial", guest_id=guest_id, error=str(e))
            return []

        bookings = []
        for row in history_rows or []:
            try:
                bookings.append(Booking.from_row(row))
            except ValueError:
                continue

        if not bookings:
            logger.info("Huésped sin historial de reservas", guest_id=guest_id)
            return []

        booked_ids = sorted({b.listing_id for b in bookings if b.listing_id})
        try:
            booked_listings = self._to_listings(self.listing_repo.get_by_ids(booked_ids))
        except Exception as e:
            logger.error("Error obteniendo listings reservados", guest_id=guest_id, error=str(e))
            return []

        prefs = build_preferences(bookings, booked_listings)

        snapshot = await self.store.fetch_active_listings()
        if snapshot.error is not None:
            return []

        results = rank_listings(snapshot.items, prefs, limit)

        logger.info(
            "Recomendaciones generadas",
            guest_id=guest_id,
            history=len(bookings),
            candidates=len(snapshot.items),
            recommended=len(results),
        )
        return results
