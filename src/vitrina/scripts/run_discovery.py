"""
Script para consultar el motor de descubrimiento desde la terminal.

Busca listings activos con los criterios dados e imprime el resultado
como JSON. Opcionalmente muestra recomendaciones para un huésped.

Uso:
    python -m vitrina.scripts.run_discovery --category home --guests 2
    python -m vitrina.scripts.run_discovery --query playa --check-in 2024-03-10 --check-out 2024-03-15
    python -m vitrina.scripts.run_discovery --recommend-for <guest_id>
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

import structlog
from pydantic import ValidationError

from vitrina.config import get_settings
from vitrina.discovery import DiscoveryService
from vitrina.logging_setup import configure_logging
from vitrina.models import SearchCriteria
from vitrina.recommendations import RecommendationEngine

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Busca listings disponibles")
    parser.add_argument(
        "--category",
        default="home",
        help="home, experience o service",
    )
    parser.add_argument("--query", default="", help="Texto a buscar")
    parser.add_argument("--guests", type=int, default=1, help="Cantidad de huéspedes")
    parser.add_argument("--check-in", dest="check_in", default=None, help="YYYY-MM-DD")
    parser.add_argument("--check-out", dest="check_out", default=None, help="YYYY-MM-DD")
    parser.add_argument(
        "--recommend-for",
        dest="recommend_for",
        default=None,
        help="ID de huésped para mostrar recomendaciones",
    )
    return parser


def criteria_from_args(args: argparse.Namespace) -> SearchCriteria:
    return SearchCriteria(
        category=args.category,
        search_query=args.query,
        guests=args.guests,
        check_in=args.check_in,
        check_out=args.check_out,
    )


def _listing_payload(listing) -> dict:
    return {
        "id": listing.id,
        "kind": listing.kind.label,
        "host_id": listing.host_id,
        "title": listing.title,
        "location": listing.location,
        "max_guests": listing.max_guests,
        "created_at": listing.created_at.isoformat() if listing.created_at else None,
    }


async def run_discovery(
    criteria: SearchCriteria, recommend_for: Optional[str] = None
) -> dict:
    """Ejecuta la búsqueda (y recomendaciones si se pidió)."""
    service = DiscoveryService()
    result = await service.search(criteria)

    payload = {
        "total_active": result.total_active,
        "visible": [_listing_payload(listing) for listing in result.listings],
        "error": result.error,
    }

    if recommend_for:
        engine = RecommendationEngine(store=service.store)
        recommendations = await engine.recommend_for_guest(recommend_for)
        payload["recommendations"] = [
            {
                **_listing_payload(r.listing),
                "score": round(r.score, 2),
                "reasons": r.reasons,
            }
            for r in recommendations
        ]

    return payload


def main():
    """Entry point del script."""
    args = build_parser().parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        criteria = criteria_from_args(args)
    except (ValidationError, ValueError) as e:
        logger.error("Criterios inválidos", error=str(e))
        sys.exit(2)

    try:
        payload = asyncio.run(run_discovery(criteria, args.recommend_for))
    except KeyboardInterrupt:
        logger.info("Búsqueda interrumpida por usuario")
        sys.exit(130)
    except Exception as e:
        logger.error("Error fatal en búsqueda", error=str(e))
        sys.exit(1)

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    sys.exit(0 if payload["error"] is None else 1)


if __name__ == "__main__":
    main()
