"""
Calculador de disponibilidad.

Dado un rango candidato y las reservas, devuelve los IDs de listings
que no se pueden reservar por solapamiento de fechas. Se recalcula
completo en cada consulta; no hay actualización incremental.
"""

from datetime import date
from typing import Any, Iterable

import structlog

from vitrina.models.booking import Booking

logger = structlog.get_logger()


def ranges_overlap(
    start: date,
    end: date,
    booking_start: date,
    booking_end: date,
    inclusive_checkout: bool = True,
) -> bool:
    """
    Test de intersección de intervalos.

    Inclusivo: el día de check-out de la reserva sigue ocupado, así que
    [10, 15] bloquea un check-in el 15 pero no el 16.
    Exclusivo (estilo hotel): el día de check-out queda libre para el
    siguiente huésped.
    """
    if inclusive_checkout:
        return start <= booking_end and end >= booking_start
    return start < booking_end and end > booking_start


def unavailable_listing_ids(
    check_in: date,
    check_out: date,
    bookings: Iterable[Any],
    *,
    inclusive_checkout: bool = True,
) -> frozenset[str]:
    """
    Calcula el conjunto de listings no disponibles para [check_in, check_out].

    Args:
        check_in: Inicio del rango candidato
        check_out: Fin del rango candidato
        bookings: Reservas (Booking o filas crudas)
        inclusive_checkout: Semántica del día de check-out

    Returns:
        IDs de listings con al menos una reserva pending/confirmed solapada
    """
    blocked: set[str] = set()
    skipped = 0

    for raw in bookings:
        try:
            booking = Booking.from_row(raw)
        except ValueError:
            skipped += 1
            continue

        if not booking.blocks_availability:
            continue

        # Reservas sin fechas, sin listing o con rango invertido no bloquean
        if not booking.is_complete:
            skipped += 1
            continue

        if ranges_overlap(
            check_in,
            check_out,
            booking.check_in,
            booking.check_out,
            inclusive_checkout=inclusive_checkout,
        ):
            blocked.add(booking.listing_id)

    if skipped:
        logger.debug("Reservas incompletas ignoradas", skipped=skipped)

    return frozenset(blocked)
