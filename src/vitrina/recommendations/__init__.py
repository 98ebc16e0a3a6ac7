"""
Recomendaciones personalizadas.

Puntúa listings activos según el historial de reservas del huésped.
"""

from vitrina.recommendations.engine import (
    GuestPreferences,
    RecommendationEngine,
    RecommendationResult,
    build_preferences,
    rank_listings,
    score_listing,
)

__all__ = [
    "GuestPreferences",
    "RecommendationEngine",
    "RecommendationResult",
    "build_preferences",
    "rank_listings",
    "score_listing",
]
