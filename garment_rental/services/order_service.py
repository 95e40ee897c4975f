from datetime import datetime
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from garment_rental.extensions.db import db
from garment_rental.models import CartItem, Order, OrderItem, Rental, RentalStatus
from garment_rental.models.order import (
    CANCELLABLE_ORDER_STATUSES,
    ORDER_STATUSES,
    ORDER_TYPE_RENTAL,
    ORDER_TYPE_SALE,
    PAYMENT_STATUSES,
)
from garment_rental.services import catalog_service, notification_service, rental_service, stock_service
from garment_rental.services.pricing import DEFAULT_SALES_TAX_RATE, order_totals, to_money
from garment_rental.utils.errors import (
    CartEmpty,
    ConcurrentUpdate,
    InsufficientStock,
    InvalidOrderStatus,
    InvalidState,
    OrderNotCancellable,
    OrderNotFound,
    PriceMissing,
    ProductUnavailable,
    VariantUnavailable,
)
from garment_rental.utils.order_numbers import generate_order_number
from garment_rental.utils.pagination import page_args


ADDRESS_FIELDS = (
    "name",
    "email",
    "phone",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
)


def _get_sales_tax_rate() -> Decimal:
    try:
        v = Decimal(str(current_app.config.get("SALES_TAX_RATE", DEFAULT_SALES_TAX_RATE)))
        return v if v >= 0 else DEFAULT_SALES_TAX_RATE
    except (InvalidOperation, ValueError):
        return DEFAULT_SALES_TAX_RATE


def _address_columns(prefix: str, address: dict | None) -> dict:
    address = address or {}
    return {f"{prefix}_{field}": address.get(field) for field in ADDRESS_FIELDS}


def _unit_price_for(product_id: int) -> Decimal:
    price = catalog_service.get_current_price(product_id)
    if price is None:
        return Decimal("0")
    return to_money(price.sale_price or price.mrp or 0)


def _build_order_lines(cart_items: list[CartItem]) -> list[dict]:
    """Validate every cart line and freeze what goes into the order items."""
    lines: list[dict] = []
    for item in cart_items:
        product = item.product
        variant = item.variant

        if not product or not product.is_active or product.is_deleted:
            name = getattr(product, "name", None) or "unknown"
            raise ProductUnavailable(
                f"Product {name} is not available",
                payload={"product_id": item.product_id},
            )

        unit_price = _unit_price_for(product.id)
        if unit_price <= 0:
            raise PriceMissing(
                f"Price not set for product {product.name}",
                payload={"product_id": product.id},
            )

        if item.variant_id is not None:
            if variant is None or not variant.is_active:
                raise VariantUnavailable(payload={"variant_id": item.variant_id})
            if variant.stock_quantity < item.quantity:
                raise InsufficientStock(
                    f"Insufficient stock for {product.name} ({variant.size}, {variant.color}). "
                    f"Available: {variant.stock_quantity}",
                    payload={
                        "variant_id": variant.id,
                        "requested": item.quantity,
                        "available": variant.stock_quantity,
                    },
                )

        lines.append(
            {
                "product_id": product.id,
                "variant_id": variant.id if variant else None,
                "product_name": product.name,
                "product_sku": product.sku,
                "variant_sku": variant.sku_variant if variant else None,
                "size": variant.size if variant else None,
                "color": variant.color if variant else None,
                "quantity": item.quantity,
                "unit_price": unit_price,
                "subtotal": to_money(unit_price * item.quantity),
            }
        )
    return lines


def create_order(
    user_id: int,
    shipping_address: dict,
    billing_address: dict | None = None,
    payment_method: str | None = None,
    notes: str | None = None,
) -> Order:
    """
    Checkout: turn the user's cart into a pending sale order.

    Order, items, stock decrements and cart clean-up commit together or not
    at all. The confirmation event goes out after the commit.
    """
    try:
        cart_items = CartItem.query.filter_by(user_id=user_id).order_by(CartItem.id.asc()).all()
        if not cart_items:
            raise CartEmpty()

        lines = _build_order_lines(cart_items)
        totals = order_totals([line["subtotal"] for line in lines], _get_sales_tax_rate())

        shipping = dict(shipping_address or {})
        if not shipping.get("country"):
            shipping["country"] = current_app.config.get("DEFAULT_SHIPPING_COUNTRY", "India")

        order = Order(
            order_number=generate_order_number("ORD"),
            user_id=user_id,
            order_type=ORDER_TYPE_SALE,
            status="pending",
            payment_status="pending",
            payment_method=payment_method,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            shipping_amount=totals.shipping_amount,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
            notes=notes,
            ordered_at=datetime.utcnow(),
            **_address_columns("shipping", shipping),
            **_address_columns("billing", billing_address),
        )
        order.items = [OrderItem(**line) for line in lines]
        db.session.add(order)
        db.session.flush()

        for line in lines:
            if line["variant_id"] is not None:
                stock_service.decrement_for_sale(line["variant_id"], line["quantity"], commit=False)

        CartItem.query.filter_by(user_id=user_id).delete(synchronize_session=False)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "[orders] placed order=%s user=%s total=%s", order.order_number, user_id, order.total_amount
    )
    _notify_order(order, "ORDER_PLACED", "Your order has been placed.")
    return order


def _notify_order(order: Order, event_type: str, message: str) -> None:
    try:
        notification_service.emit_event(
            order.user_id,
            event_type,
            message,
            meta={"order_id": order.id, "order_number": order.order_number},
            event_key=f"{event_type}:{order.id}",
        )
    except Exception:
        current_app.logger.exception("[orders] event %s for order=%s not queued", event_type, order.id)


def get_order_by_id(order_id: int, user_id: int | None = None) -> Order:
    q = Order.query.filter(Order.id == order_id)
    if user_id is not None:
        q = q.filter(Order.user_id == user_id)
    order = q.first()
    if not order:
        raise OrderNotFound()
    return order


def get_user_orders(user_id: int) -> list[Order]:
    return (
        Order.query.filter_by(user_id=user_id)
        .order_by(Order.ordered_at.desc(), Order.id.desc())
        .all()
    )


def cancel_order(order_id: int, user_id: int | None = None) -> Order:
    """
    Cancel a pending/confirmed order. Sale items go back to stock; a rental
    order takes its booking down with it.

    Locks the rental before the order, the same order ``extend_rental`` takes
    them in.
    """
    try:
        rental_id = db.session.query(Rental.id).filter(Rental.order_id == order_id).scalar()
        rental = rental_service.get_rental_for_update(rental_id) if rental_id is not None else None

        q = Order.query.filter(Order.id == order_id)
        if user_id is not None:
            q = q.filter(Order.user_id == user_id)
        order = q.with_for_update().first()
        if not order:
            raise OrderNotFound()

        if order.status not in CANCELLABLE_ORDER_STATUSES:
            raise OrderNotCancellable(
                f"Order cannot be cancelled. Current status: {order.status}",
                payload={"status": order.status},
            )

        if order.order_type == ORDER_TYPE_RENTAL:
            if rental is not None:
                if rental.rental_status not in rental_service.USER_CANCELLABLE_STATUSES:
                    raise OrderNotCancellable(
                        "Rental is already under way",
                        payload={"rental_status": rental.rental_status.value},
                    )
                rental.rental_status = RentalStatus.CANCELLED
        else:
            for item in order.items:
                if item.variant_id is not None:
                    stock_service.restock_from_sale(item.variant_id, item.quantity, commit=False)

        order.status = "cancelled"
        order.cancelled_at = datetime.utcnow()
        db.session.commit()
    except StaleDataError as err:
        db.session.rollback()
        raise ConcurrentUpdate() from err
    except OperationalError as err:
        # Lock wait timeout / deadlock against a concurrent rental change
        db.session.rollback()
        current_app.logger.warning("[orders] cancel conflict order=%s: %s", order_id, err.orig)
        raise ConcurrentUpdate(payload={"reason": "lock_conflict"}) from err
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("[orders] cancelled order=%s", order.order_number)
    _notify_order(order, "ORDER_CANCELLED", "Your order has been cancelled.")
    return order


def update_order_status(order_id: int, status: str, tracking_number: str | None = None) -> Order:
    """Admin/ops status change. Cancelling goes through ``cancel_order``."""
    new_status = str(status or "").strip().lower()
    if new_status not in ORDER_STATUSES:
        raise InvalidOrderStatus(
            f"Unknown order status: {status}",
            payload={"status": status, "allowed": list(ORDER_STATUSES)},
        )
    if new_status == "cancelled":
        return cancel_order(order_id)

    try:
        order = Order.query.filter(Order.id == order_id).with_for_update().first()
        if not order:
            raise OrderNotFound()
        if order.status == "cancelled":
            raise InvalidState(
                "Order is cancelled",
                payload={"status": order.status},
            )

        now = datetime.utcnow()
        order.status = new_status
        if new_status == "confirmed" and order.confirmed_at is None:
            order.confirmed_at = now
        elif new_status == "shipped" and order.shipped_at is None:
            order.shipped_at = now
            if tracking_number:
                order.tracking_number = tracking_number
        elif new_status == "delivered" and order.delivered_at is None:
            order.delivered_at = now
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("[orders] status order=%s -> %s", order.order_number, new_status)
    _notify_order(order, f"ORDER_{new_status.upper()}", f"Your order is now {new_status}.")
    return order


def list_orders(filters: dict | None = None, page: int | str = 1, per_page: int | str = 20) -> dict:
    """Admin listing. Date filters apply to ``ordered_at``."""
    filters = filters or {}
    page_int, per_page_int = page_args(page, per_page, default_per_page=20)

    query = Order.query
    if filters.get("status"):
        if filters["status"] not in ORDER_STATUSES:
            raise InvalidOrderStatus(payload={"status": filters["status"]})
        query = query.filter(Order.status == filters["status"])
    if filters.get("payment_status"):
        if filters["payment_status"] not in PAYMENT_STATUSES:
            raise InvalidOrderStatus("Unknown payment status", payload={"payment_status": filters["payment_status"]})
        query = query.filter(Order.payment_status == filters["payment_status"])
    if filters.get("order_type"):
        query = query.filter(Order.order_type == filters["order_type"])
    if filters.get("user_id"):
        query = query.filter(Order.user_id == filters["user_id"])
    if filters.get("from_date"):
        query = query.filter(Order.ordered_at >= filters["from_date"])
    if filters.get("to_date"):
        query = query.filter(Order.ordered_at <= filters["to_date"])

    total = query.count()
    items = (
        query.order_by(Order.ordered_at.desc(), Order.id.desc())
        .offset((page_int - 1) * per_page_int)
        .limit(per_page_int)
        .all()
    )

    return {
        "page": page_int,
        "per_page": per_page_int,
        "total": int(total),
        "items": [order_to_dict(o) for o in items],
    }


def order_to_dict(order: Order) -> dict:
    def _address(prefix: str) -> dict | None:
        data = {field: getattr(order, f"{prefix}_{field}") for field in ADDRESS_FIELDS}
        return data if any(v is not None for v in data.values()) else None

    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "order_type": order.order_type,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "subtotal": float(order.subtotal or 0),
        "tax_amount": float(order.tax_amount or 0),
        "shipping_amount": float(order.shipping_amount or 0),
        "discount_amount": float(order.discount_amount or 0),
        "total_amount": float(order.total_amount or 0),
        "shipping_address": _address("shipping"),
        "billing_address": _address("billing"),
        "notes": order.notes,
        "tracking_number": order.tracking_number,
        "ordered_at": order.ordered_at.isoformat() if order.ordered_at else None,
        "confirmed_at": order.confirmed_at.isoformat() if order.confirmed_at else None,
        "shipped_at": order.shipped_at.isoformat() if order.shipped_at else None,
        "delivered_at": order.delivered_at.isoformat() if order.delivered_at else None,
        "cancelled_at": order.cancelled_at.isoformat() if order.cancelled_at else None,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "variant_id": i.variant_id,
                "product_name": i.product_name,
                "product_sku": i.product_sku,
                "variant_sku": i.variant_sku,
                "size": i.size,
                "color": i.color,
                "quantity": i.quantity,
                "unit_price": float(i.unit_price),
                "subtotal": float(i.subtotal),
            }
            for i in order.items
        ],
    }
