"""
Unit inventory counters.

Every mutation is a single ``UPDATE ... SET col = col +/- :qty WHERE <guard>``
so concurrent callers can't lose each other's writes. The guard lives in the
WHERE clause; zero matched rows means the guard failed (or the variant is
gone).

Two conventions share the counters:
holds against rentals go through ``stock_allocated`` (``reserve_for_rental``/``release_for_rental``),
sales take units out of ``stock_quantity`` (``decrement_for_sale``).
"""

from flask import current_app
from sqlalchemy import case, update

from garment_rental.extensions.db import db
from garment_rental.models import ProductVariant
from garment_rental.utils.errors import InsufficientStock, InvalidQuantity, VariantNotFound


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantity(payload={"quantity": quantity})
    return quantity


def _execute(stmt) -> int:
    result = db.session.execute(stmt.execution_options(synchronize_session=False))
    return int(result.rowcount or 0)


def _variant_exists(variant_id: int) -> bool:
    return db.session.query(ProductVariant.id).filter(ProductVariant.id == variant_id).first() is not None


def _finish(variant_id: int, commit: bool) -> dict:
    if commit:
        db.session.commit()
    return get_stock(variant_id)


def get_stock(variant_id: int) -> dict:
    variant = (
        db.session.query(ProductVariant)
        .filter(ProductVariant.id == variant_id)
        .populate_existing()
        .first()
    )
    if not variant:
        raise VariantNotFound()

    qty = int(variant.stock_quantity or 0)
    allocated = int(variant.stock_allocated or 0)
    return {
        "variant_id": variant.id,
        "product_id": variant.product_id,
        "stock_quantity": qty,
        "stock_allocated": allocated,
        "available": max(0, qty - allocated),
    }


def reserve(variant_id: int, quantity: int, *, commit: bool = True) -> dict:
    """Hold ``quantity`` units: fails unless quantity - allocated >= requested."""
    qty = _validate_quantity(quantity)
    try:
        matched = _execute(
            update(ProductVariant)
            .where(
                ProductVariant.id == variant_id,
                ProductVariant.stock_quantity - ProductVariant.stock_allocated >= qty,
            )
            .values(stock_allocated=ProductVariant.stock_allocated + qty)
        )
        if matched == 0:
            if not _variant_exists(variant_id):
                raise VariantNotFound()
            raise InsufficientStock(
                "Not enough available units to reserve",
                payload={"variant_id": variant_id, "requested": qty},
            )
        return _finish(variant_id, commit)
    except Exception:
        if commit:
            db.session.rollback()
        raise


def release(variant_id: int, quantity: int, *, commit: bool = True) -> dict:
    """Give back held units; never drops below zero."""
    qty = _validate_quantity(quantity)
    try:
        matched = _execute(
            update(ProductVariant)
            .where(ProductVariant.id == variant_id)
            .values(
                stock_allocated=case(
                    (ProductVariant.stock_allocated > qty, ProductVariant.stock_allocated - qty),
                    else_=0,
                )
            )
        )
        if matched == 0:
            raise VariantNotFound()
        return _finish(variant_id, commit)
    except Exception:
        if commit:
            db.session.rollback()
        raise


def add_stock(variant_id: int, quantity: int, *, commit: bool = True) -> dict:
    qty = _validate_quantity(quantity)
    try:
        matched = _execute(
            update(ProductVariant)
            .where(ProductVariant.id == variant_id)
            .values(stock_quantity=ProductVariant.stock_quantity + qty)
        )
        if matched == 0:
            raise VariantNotFound()
        return _finish(variant_id, commit)
    except Exception:
        if commit:
            db.session.rollback()
        raise


def reduce_stock(variant_id: int, quantity: int, *, commit: bool = True) -> dict:
    """
    Units permanently leave the pool (completed sale). Any allocation they
    were covering is released with them.
    """
    qty = _validate_quantity(quantity)
    try:
        matched = _execute(
            update(ProductVariant)
            .where(
                ProductVariant.id == variant_id,
                ProductVariant.stock_quantity >= qty,
            )
            .values(
                stock_quantity=ProductVariant.stock_quantity - qty,
                stock_allocated=case(
                    (ProductVariant.stock_allocated > qty, ProductVariant.stock_allocated - qty),
                    else_=0,
                ),
            )
        )
        if matched == 0:
            if not _variant_exists(variant_id):
                raise VariantNotFound()
            raise InsufficientStock(
                "Not enough units in stock",
                payload={"variant_id": variant_id, "requested": qty},
            )
        return _finish(variant_id, commit)
    except Exception:
        if commit:
            db.session.rollback()
        raise


def decrement_for_sale(variant_id: int, quantity: int, *, commit: bool = True) -> dict:
    current_app.logger.debug("[stock] sale decrement variant=%s qty=%s", variant_id, quantity)
    return reduce_stock(variant_id, quantity, commit=commit)


def restock_from_sale(variant_id: int, quantity: int, *, commit: bool = True) -> dict:
    return add_stock(variant_id, quantity, commit=commit)


def reserve_for_rental(variant_id: int, quantity: int = 1, *, commit: bool = True) -> dict:
    current_app.logger.debug("[stock] rental hold variant=%s qty=%s", variant_id, quantity)
    return reserve(variant_id, quantity, commit=commit)


def release_for_rental(variant_id: int, quantity: int = 1, *, commit: bool = True) -> dict:
    current_app.logger.debug("[stock] rental release variant=%s qty=%s", variant_id, quantity)
    return release(variant_id, quantity, commit=commit)
