"""
Pipeline de filtros por criterios.

Reduce la colección completa de listings al subconjunto que ve el
visitante. Los filtros son predicados independientes combinados con AND:
- Categoría (bucket calculado por el clasificador)
- Búsqueda de texto (título, ubicación o descripción)
- Capacidad de huéspedes
- Disponibilidad (solo si hay check-in y check-out)

El resultado se ordena por created_at descendente (más nuevos primero)
con sort estable, así que los empates conservan el orden del store.
"""

from datetime import datetime, timezone
from typing import AbstractSet, Any, Iterable, Mapping, Optional, Union

import structlog

from vitrina.config import get_settings
from vitrina.discovery.availability import unavailable_listing_ids
from vitrina.models import Listing, SearchCriteria

logger = structlog.get_logger()

# Listings sin fecha de creación van al final
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def matches_category(listing: Listing, criteria: SearchCriteria) -> bool:
    return listing.kind == criteria.category


def matches_search(listing: Listing, criteria: SearchCriteria) -> bool:
    query = criteria.normalized_query
    if not query:
        return True
    return any(
        query in field.casefold()
        for field in (listing.title, listing.location, listing.description)
    )


def has_capacity(listing: Listing, criteria: SearchCriteria) -> bool:
    return listing.max_guests >= criteria.guests


def is_available(
    listing: Listing,
    criteria: SearchCriteria,
    unavailable: AbstractSet[str],
) -> bool:
    if not criteria.has_dates:
        return True
    return listing.id not in unavailable


def _sort_key(listing: Listing) -> datetime:
    return listing.created_at or _EPOCH


def _ingest_listings(all_listings: Iterable[Any]) -> list[Listing]:
    listings = []
    for raw in all_listings:
        try:
            listings.append(Listing.from_row(raw))
        except ValueError as e:
            row_id = raw.get("id") if isinstance(raw, dict) else None
            logger.warning("Listing malformado ignorado", listing_id=row_id, error=str(e))
    return listings


def compute_visible_listings(
    all_listings: Iterable[Any],
    all_bookings: Iterable[Any],
    criteria: Union[SearchCriteria, Mapping[str, Any]],
    *,
    inclusive_checkout: Optional[bool] = None,
) -> list[Listing]:
    """
    Calcula la lista ordenada de listings visibles.

    Args:
        all_listings: Listings (modelos o filas crudas del store)
        all_bookings: Reservas (modelos o filas crudas del store)
        criteria: Criterios del visitante (modelo o dict con las mismas claves)
        inclusive_checkout: Semántica del check-out (None = settings)

    Returns:
        Subconjunto de all_listings, más nuevos primero
    """
    if not isinstance(criteria, SearchCriteria):
        criteria = SearchCriteria.model_validate(criteria)

    listings = _ingest_listings(all_listings)

    unavailable: AbstractSet[str] = frozenset()
    if criteria.has_dates:
        if inclusive_checkout is None:
            inclusive_checkout = get_settings().inclusive_checkout
        unavailable = unavailable_listing_ids(
            criteria.check_in,
            criteria.check_out,
            all_bookings,
            inclusive_checkout=inclusive_checkout,
        )

    visible = [
        listing
        for listing in listings
        if matches_category(listing, criteria)
        and matches_search(listing, criteria)
        and has_capacity(listing, criteria)
        and is_available(listing, criteria, unavailable)
    ]

    # sorted() es estable: empates mantienen el orden del store
    visible = sorted(visible, key=_sort_key, reverse=True)

    logger.debug(
        "Listings filtrados",
        total=len(listings),
        visible=len(visible),
        category=criteria.category.value,
        unavailable=len(unavailable),
    )
    return visible
