"""
Motor de descubrimiento de listings.

Clasifica, filtra y chequea disponibilidad de los listings activos,
y anota cada listing visible con rating y favorito en vivo.
"""

from vitrina.discovery.classifier import classify, classify_fields
from vitrina.discovery.availability import ranges_overlap, unavailable_listing_ids
from vitrina.discovery.pipeline import compute_visible_listings
from vitrina.discovery.channels import Channel, PollingFeed, Subscription
from vitrina.discovery.store import ListingFeed, ListingStore, StoreSnapshot
from vitrina.discovery.aggregation import (
    AnnotationRegistry,
    FavoriteState,
    FavoriteTracker,
    ListingAnnotations,
    ReviewFeed,
    summarize_ratings,
)
from vitrina.discovery.service import DiscoveryResult, DiscoveryService

__all__ = [
    # Clasificación
    "classify",
    "classify_fields",
    # Disponibilidad
    "ranges_overlap",
    "unavailable_listing_ids",
    # Pipeline
    "compute_visible_listings",
    # Canales
    "Channel",
    "PollingFeed",
    "Subscription",
    # Store
    "ListingFeed",
    "ListingStore",
    "StoreSnapshot",
    # Agregación
    "AnnotationRegistry",
    "FavoriteState",
    "FavoriteTracker",
    "ListingAnnotations",
    "ReviewFeed",
    "summarize_ratings",
    # Servicio
    "DiscoveryResult",
    "DiscoveryService",
]
