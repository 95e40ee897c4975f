from datetime import date

from sqlalchemy import and_, func, or_

from garment_rental.extensions.db import db
from garment_rental.models import Rental
from garment_rental.models.rental import TERMINAL_RENTAL_STATUSES
from garment_rental.utils.errors import InvalidDateRange


def _overlap_clause(start: date, end: date):
    return or_(
        # New rental starts during an existing one
        and_(Rental.rental_start_date <= start, Rental.rental_end_date >= start),
        # New rental ends during an existing one
        and_(Rental.rental_start_date <= end, Rental.rental_end_date >= end),
        # New rental swallows an existing one
        and_(Rental.rental_start_date >= start, Rental.rental_end_date <= end),
    )


def count_overlapping_rentals(
    product_id: int,
    variant_id: int | None,
    start: date,
    end: date,
    exclude_rental_id: int | None = None,
) -> int:
    q = db.session.query(func.count(Rental.id)).filter(
        Rental.product_id == product_id,
        Rental.rental_status.notin_(TERMINAL_RENTAL_STATUSES),
        _overlap_clause(start, end),
    )
    # Without a variant the whole product's calendar is checked.
    if variant_id is not None:
        q = q.filter(Rental.variant_id == variant_id)
    if exclude_rental_id is not None:
        q = q.filter(Rental.id != exclude_rental_id)
    return int(q.scalar() or 0)


def is_available(
    product_id: int,
    variant_id: int | None,
    start: date,
    end: date,
    exclude_rental_id: int | None = None,
) -> bool:
    """
    Point-in-time read. Callers that insert afterwards must hold the
    product's booking lock (see ``rental_service._lock_product_for_booking``).
    """
    return count_overlapping_rentals(product_id, variant_id, start, end, exclude_rental_id) == 0


def check_availability(product_id: int, variant_id: int | None, start: date, end: date) -> dict:
    if end <= start:
        raise InvalidDateRange("End date must be after start date")

    available = is_available(product_id, variant_id, start, end)
    return {
        "product_id": product_id,
        "variant_id": variant_id,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "available": available,
    }
