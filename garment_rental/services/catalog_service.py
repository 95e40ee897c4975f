"""Read-only lookups against the catalog tables (owned by the catalog service)."""

from datetime import date, datetime

from sqlalchemy import or_

from garment_rental.extensions.db import db
from garment_rental.models import Product, ProductPrice, ProductVariant
from garment_rental.services.pricing import PricingSnapshot, snapshot_from_price


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def get_variant_for_product(product_id: int, variant_id: int) -> ProductVariant | None:
    return ProductVariant.query.filter_by(id=variant_id, product_id=product_id).first()


def get_current_price(product_id: int, on_date: date | None = None) -> ProductPrice | None:
    """
    The ``is_current`` price row whose effective window contains ``on_date``.
    Open-ended windows (NULL from/to) always match; the latest start wins.
    """
    on_date = on_date or datetime.utcnow().date()
    return (
        ProductPrice.query.filter(
            ProductPrice.product_id == product_id,
            ProductPrice.is_current.is_(True),
            or_(ProductPrice.effective_from.is_(None), ProductPrice.effective_from <= on_date),
            or_(ProductPrice.effective_to.is_(None), ProductPrice.effective_to >= on_date),
        )
        .order_by(
            ProductPrice.effective_from.is_(None),
            ProductPrice.effective_from.desc(),
            ProductPrice.id.desc(),
        )
        .first()
    )


def get_pricing_snapshot(product_id: int, on_date: date | None = None) -> PricingSnapshot | None:
    price = get_current_price(product_id, on_date)
    if price is None or price.rental_price_per_day is None:
        return None
    return snapshot_from_price(price)
