"""
Clasificador de categorías.

Asigna cada listing a exactamente un bucket (Home, Experience, Service)
a partir de los campos legacy. Home es el default estructural:
"un lugar para quedarse salvo que se demuestre lo contrario".
"""

from typing import Any, Optional

from vitrina.models.listing import ListingKind


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _normalize(category: Optional[str]) -> str:
    return category.strip().lower() if isinstance(category, str) else ""


def classify_fields(
    category: Optional[str] = None,
    place_type: Optional[str] = None,
    activity_type: Optional[str] = None,
    service_type: Optional[str] = None,
) -> ListingKind:
    """
    Clasifica a partir de los campos crudos.

    Precedencia fija:
    1. experience / activityType -> EXPERIENCE, salvo que también tenga
       serviceType (un servicio nunca se marca como experiencia)
    2. service / serviceType -> SERVICE
    3. todo lo demás -> HOME
    """
    tag = _normalize(category)
    has_activity = _has_text(activity_type)
    has_service = _has_text(service_type)

    if tag == "experience" or has_activity:
        return ListingKind.SERVICE if has_service else ListingKind.EXPERIENCE

    if tag == "service" or has_service:
        return ListingKind.SERVICE

    # placeType, place/resort/hotel/transient o sin marcadores: todos caen en HOME.
    # place_type no puede sacar a un listing de HOME, solo confirmarlo.
    return ListingKind.HOME


def classify(listing: Any) -> ListingKind:
    """Clasifica un Listing o una fila cruda (dict, snake_case o camelCase)."""
    if isinstance(listing, dict):
        return classify_fields(
            category=listing.get("category"),
            place_type=listing.get("place_type", listing.get("placeType")),
            activity_type=listing.get("activity_type", listing.get("activityType")),
            service_type=listing.get("service_type", listing.get("serviceType")),
        )
    return classify_fields(
        category=getattr(listing, "category", None),
        place_type=getattr(listing, "place_type", None),
        activity_type=getattr(listing, "activity_type", None),
        service_type=getattr(listing, "service_type", None),
    )
