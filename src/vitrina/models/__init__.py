"""
Modelos de datos del sistema.

Todos los registros se leen del store externo; el motor solo
mantiene vistas derivadas en memoria.
"""

from vitrina.models.listing import Listing, ListingKind, ListingStatus
from vitrina.models.booking import Booking, BookingStatus
from vitrina.models.review import Review, ReviewStatus, RatingSummary
from vitrina.models.favorite import Favorite
from vitrina.models.criteria import SearchCriteria

__all__ = [
    # Listings
    "Listing",
    "ListingKind",
    "ListingStatus",
    # Reservas
    "Booking",
    "BookingStatus",
    # Reseñas
    "Review",
    "ReviewStatus",
    "RatingSummary",
    # Favoritos
    "Favorite",
    # Búsqueda
    "SearchCriteria",
]
