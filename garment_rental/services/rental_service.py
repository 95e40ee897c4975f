from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import lazyload
from sqlalchemy.orm.exc import StaleDataError

from garment_rental.extensions.db import db
from garment_rental.models import DeliveryType, DepositStatus, Order, Product, Rental, RentalStatus
from garment_rental.models.order import CANCELLABLE_ORDER_STATUSES, ORDER_TYPE_RENTAL
from garment_rental.models.rental import TERMINAL_RENTAL_STATUSES
from garment_rental.services import catalog_service, notification_service
from garment_rental.services.availability_service import is_available
from garment_rental.services.pricing import (
    DEFAULT_LATE_FEE_MULTIPLIER,
    ZERO,
    days_between,
    quote_extension,
    quote_rental,
    settle_return,
    to_money,
)
from garment_rental.utils.errors import (
    AccessDenied,
    AlreadyReturned,
    ConcurrentUpdate,
    InvalidAmount,
    InvalidDateRange,
    InvalidDeliveryType,
    InvalidRentalStatus,
    InvalidState,
    InvalidStatusTransition,
    NotAvailable,
    OutOfStock,
    PricingMissing,
    ProductNotFound,
    ProductNotRentable,
    RentalNotFound,
    VariantNotFound,
)
from garment_rental.utils.order_numbers import generate_order_number
from garment_rental.utils.pagination import page_args


# Lifecycle. CANCELLED is reachable from every state that still has a future.
ALLOWED_TRANSITIONS: dict[RentalStatus, tuple[RentalStatus, ...]] = {
    RentalStatus.BOOKED: (RentalStatus.CONFIRMED, RentalStatus.CANCELLED),
    RentalStatus.CONFIRMED: (RentalStatus.OUT_FOR_DELIVERY, RentalStatus.CANCELLED),
    RentalStatus.OUT_FOR_DELIVERY: (RentalStatus.ACTIVE, RentalStatus.CANCELLED),
    RentalStatus.ACTIVE: (RentalStatus.RETURN_REQUESTED, RentalStatus.OVERDUE, RentalStatus.CANCELLED),
    RentalStatus.OVERDUE: (
        RentalStatus.RETURN_REQUESTED,
        RentalStatus.PICKUP_SCHEDULED,
        RentalStatus.RETURNED,
        RentalStatus.CANCELLED,
    ),
    RentalStatus.RETURN_REQUESTED: (RentalStatus.PICKUP_SCHEDULED, RentalStatus.CANCELLED),
    RentalStatus.PICKUP_SCHEDULED: (RentalStatus.RETURNED, RentalStatus.CANCELLED),
    RentalStatus.RETURNED: (RentalStatus.INSPECTING,),
    RentalStatus.INSPECTING: (RentalStatus.COMPLETED,),
    RentalStatus.COMPLETED: (),
    RentalStatus.CANCELLED: (),
}

# The renter may only back out before the garment ships.
USER_CANCELLABLE_STATUSES = (RentalStatus.BOOKED, RentalStatus.CONFIRMED)


def parse_delivery_type(value) -> DeliveryType:
    if isinstance(value, DeliveryType):
        return value
    if value is None or str(value).strip() == "":
        return DeliveryType.STANDARD
    try:
        return DeliveryType(str(value).strip().lower())
    except ValueError:
        raise InvalidDeliveryType(payload={"delivery_type": value}) from None


def parse_rental_status(value) -> RentalStatus:
    if isinstance(value, RentalStatus):
        return value
    try:
        return RentalStatus(str(value or "").strip().lower())
    except ValueError:
        raise InvalidRentalStatus(
            f"Unknown rental status: {value}",
            payload={"status": value},
        ) from None


def _today() -> date:
    return datetime.utcnow().date()


def _get_late_fee_multiplier() -> Decimal:
    try:
        v = Decimal(str(current_app.config.get("LATE_FEE_MULTIPLIER", DEFAULT_LATE_FEE_MULTIPLIER)))
        return v if v >= 0 else DEFAULT_LATE_FEE_MULTIPLIER
    except (InvalidOperation, ValueError):
        return DEFAULT_LATE_FEE_MULTIPLIER


def _lock_product_for_booking(product_id: int) -> None:
    """
    Bump ``products.booking_version`` so the availability read and the insert
    that follows run under the product's row write lock until commit.
    Concurrent bookings/extensions of the same product queue up here.

    Must run before any plain SELECT in the transaction: under REPEATABLE
    READ the first consistent read fixes the snapshot the calendar check sees.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(booking_version=Product.booking_version + 1)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise ProductNotFound()


def get_rental_for_update(rental_id: int) -> Rental:
    rental = (
        Rental.query.options(lazyload("*"))
        .filter(Rental.id == rental_id)
        .with_for_update()
        .first()
    )
    if not rental:
        raise RentalNotFound()
    return rental


def _require_owner(rental: Rental, user_id: int) -> None:
    if rental.user_id != user_id:
        raise AccessDenied("You do not have access to this rental")


def _apply_settlement(rental: Rental, returned_on: date) -> None:
    settlement = settle_return(
        daily_rate=rental.daily_rate,
        security_deposit=rental.security_deposit,
        rental_end_date=rental.rental_end_date,
        returned_on=returned_on,
        damage_charges=rental.damage_charges,
        late_fee_multiplier=_get_late_fee_multiplier(),
    )
    rental.actual_return_date = settlement.actual_return_date
    rental.late_fee = settlement.late_fee
    rental.damage_charges = settlement.damage_charges
    rental.refund_amount = settlement.refund_amount
    rental.deposit_status = settlement.deposit_status


def _cancel_linked_order(rental: Rental) -> None:
    order = db.session.get(Order, rental.order_id)
    if order is not None and order.status in CANCELLABLE_ORDER_STATUSES:
        order.status = "cancelled"
        order.cancelled_at = datetime.utcnow()


def _notify(rental: Rental, event_type: str, message: str, **meta) -> None:
    try:
        notification_service.emit_event(
            rental.user_id,
            event_type,
            message,
            meta={"rental_id": rental.id, "order_id": rental.order_id, **meta},
            event_key=f"{event_type}:{rental.id}:{rental.version_id}",
        )
    except Exception:
        current_app.logger.exception("[rentals] event %s for rental=%s not queued", event_type, rental.id)


def create_rental(
    user_id: int,
    product_id: int,
    variant_id: int | None,
    rental_start_date: date,
    rental_end_date: date,
    delivery_type: DeliveryType | str = DeliveryType.STANDARD,
) -> Rental:
    """
    Book a garment for [start, end].

    Steps (single transaction):
    - Take the product's booking lock before anything is read, so the
      calendar check sees every booking committed ahead of us.
    - Product exists and is rentable; variant (if any) exists and has stock.
    - Check the calendar, then the date range.
    - Freeze daily rate and deposit from the current price.
    - Insert the PENDING order and the BOOKED rental.
    """
    try:
        delivery = parse_delivery_type(delivery_type)

        _lock_product_for_booking(product_id)

        product = catalog_service.get_product(product_id)
        if not product:
            raise ProductNotFound()
        if not product.is_rental or not product.is_active or product.is_deleted:
            raise ProductNotRentable()

        if variant_id is not None:
            variant = catalog_service.get_variant_for_product(product_id, variant_id)
            if not variant:
                raise VariantNotFound()
            if variant.stock_quantity < 1:
                raise OutOfStock()

        if not is_available(product_id, variant_id, rental_start_date, rental_end_date):
            raise NotAvailable()

        if days_between(rental_start_date, rental_end_date) < 1:
            raise InvalidDateRange()

        snapshot = catalog_service.get_pricing_snapshot(product_id)
        if snapshot is None:
            raise PricingMissing()
        quote = quote_rental(snapshot, rental_start_date, rental_end_date)

        order = Order(
            order_number=generate_order_number("RNT"),
            user_id=user_id,
            order_type=ORDER_TYPE_RENTAL,
            status="pending",
            payment_status="pending",
            subtotal=quote.total_rental_amount,
            tax_amount=ZERO,
            shipping_amount=ZERO,
            discount_amount=ZERO,
            total_amount=quote.amount_due,
            ordered_at=datetime.utcnow(),
        )
        db.session.add(order)
        db.session.flush()

        rental = Rental(
            order_id=order.id,
            user_id=user_id,
            product_id=product_id,
            variant_id=variant_id,
            rental_start_date=rental_start_date,
            rental_end_date=rental_end_date,
            rental_days=quote.rental_days,
            daily_rate=quote.daily_rate,
            total_rental_amount=quote.total_rental_amount,
            security_deposit=quote.security_deposit,
            late_fee=ZERO,
            damage_charges=ZERO,
            refund_amount=ZERO,
            rental_status=RentalStatus.BOOKED,
            deposit_status=DepositStatus.HELD,
            delivery_type=delivery,
            is_extended=False,
            extension_count=0,
        )
        db.session.add(rental)
        db.session.commit()
    except OperationalError as err:
        # Lock wait timeout / deadlock / serialization failure: another
        # booking for this product won the race.
        db.session.rollback()
        current_app.logger.warning(
            "[rentals] booking conflict product=%s variant=%s: %s", product_id, variant_id, err.orig
        )
        raise NotAvailable(payload={"reason": "concurrent_booking"}) from err
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "[rentals] booked rental=%s product=%s variant=%s user=%s %s..%s",
        rental.id,
        product_id,
        variant_id,
        user_id,
        rental_start_date,
        rental_end_date,
    )
    _notify(rental, "RENTAL_BOOKED", "Your rental booking is confirmed.")
    return rental


def return_rental(rental_id: int, user_id: int, returned_on: date | None = None) -> Rental:
    """Close the rental: late fee, deposit refund and RETURNED status."""
    try:
        rental = get_rental_for_update(rental_id)
        _require_owner(rental, user_id)

        if rental.rental_status in (RentalStatus.COMPLETED, RentalStatus.RETURNED):
            raise AlreadyReturned()
        if rental.rental_status == RentalStatus.CANCELLED:
            raise InvalidState("Cannot return a cancelled rental")

        _apply_settlement(rental, returned_on or _today())
        rental.rental_status = RentalStatus.RETURNED
        db.session.commit()
    except StaleDataError as err:
        db.session.rollback()
        raise ConcurrentUpdate() from err
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "[rentals] returned rental=%s late_fee=%s refund=%s", rental.id, rental.late_fee, rental.refund_amount
    )
    _notify(rental, "RENTAL_RETURNED", "We received your rental return.", refund_amount=str(rental.refund_amount))
    return rental


def extend_rental(rental_id: int, user_id: int, new_end_date: date) -> Rental:
    try:
        rental = get_rental_for_update(rental_id)
        _require_owner(rental, user_id)

        if rental.rental_status in (RentalStatus.COMPLETED, RentalStatus.RETURNED):
            raise InvalidState("Cannot extend completed or returned rental")
        if rental.rental_status == RentalStatus.CANCELLED:
            raise InvalidState("Cannot extend cancelled rental")

        quote = quote_extension(rental.daily_rate, rental.rental_end_date, new_end_date)

        _lock_product_for_booking(rental.product_id)

        if not is_available(
            rental.product_id,
            rental.variant_id,
            rental.rental_end_date,
            new_end_date,
            exclude_rental_id=rental.id,
        ):
            raise NotAvailable("Product is not available for the requested extension period")

        rental.rental_end_date = quote.new_end_date
        rental.rental_days = rental.rental_days + quote.additional_days
        rental.total_rental_amount = to_money(rental.total_rental_amount) + quote.additional_cost
        rental.is_extended = True
        rental.extension_count = (rental.extension_count or 0) + 1

        order = db.session.get(Order, rental.order_id)
        if order is not None:
            order.subtotal = to_money(order.subtotal) + quote.additional_cost
            order.total_amount = to_money(order.total_amount) + quote.additional_cost

        db.session.commit()
    except OperationalError as err:
        db.session.rollback()
        current_app.logger.warning("[rentals] extension conflict rental=%s: %s", rental_id, err.orig)
        raise NotAvailable(payload={"reason": "concurrent_booking"}) from err
    except StaleDataError as err:
        db.session.rollback()
        raise ConcurrentUpdate() from err
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "[rentals] extended rental=%s to %s (+%s days)", rental.id, rental.rental_end_date, quote.additional_days
    )
    _notify(
        rental,
        "RENTAL_EXTENDED",
        "Your rental has been extended.",
        new_end_date=rental.rental_end_date.isoformat(),
    )
    return rental


def cancel_rental(rental_id: int, user_id: int) -> Rental:
    try:
        rental = get_rental_for_update(rental_id)
        _require_owner(rental, user_id)

        if rental.rental_status not in USER_CANCELLABLE_STATUSES:
            raise InvalidState(
                "Rental can no longer be cancelled",
                payload={"rental_status": rental.rental_status.value},
            )

        rental.rental_status = RentalStatus.CANCELLED
        _cancel_linked_order(rental)
        db.session.commit()
    except StaleDataError as err:
        db.session.rollback()
        raise ConcurrentUpdate() from err
    except Exception:
        db.session.rollback()
        raise

    _notify(rental, "RENTAL_CANCELLED", "Your rental has been cancelled.")
    return rental


def update_rental_status(rental_id: int, new_status: RentalStatus | str) -> Rental:
    """Admin/ops status change, restricted to the lifecycle table."""
    target = parse_rental_status(new_status)
    try:
        rental = get_rental_for_update(rental_id)
        current = rental.rental_status

        if target not in ALLOWED_TRANSITIONS.get(current, ()):
            raise InvalidStatusTransition(
                f"Cannot move rental from {current.value} to {target.value}",
                payload={"from": current.value, "to": target.value},
            )

        if target == RentalStatus.RETURNED and rental.actual_return_date is None:
            _apply_settlement(rental, _today())
        if target == RentalStatus.CANCELLED:
            _cancel_linked_order(rental)

        rental.rental_status = target
        db.session.commit()
    except StaleDataError as err:
        db.session.rollback()
        raise ConcurrentUpdate() from err
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("[rentals] status rental=%s %s -> %s", rental.id, current.value, target.value)
    _notify(rental, "RENTAL_STATUS_CHANGED", f"Your rental is now {target.value.replace('_', ' ')}.", status=target.value)
    return rental


def assess_damage(rental_id: int, damage_charges) -> Rental:
    """
    Record the inspection's damage charges. If the garment is already back,
    the refund is recomputed against the recorded return date.
    """
    amount = to_money(damage_charges)
    if amount < ZERO:
        raise InvalidAmount("Damage charges cannot be negative")

    try:
        rental = get_rental_for_update(rental_id)
        if rental.rental_status in (RentalStatus.CANCELLED, RentalStatus.COMPLETED):
            raise InvalidState(
                "Rental is closed",
                payload={"rental_status": rental.rental_status.value},
            )

        rental.damage_charges = amount
        if rental.actual_return_date is not None:
            _apply_settlement(rental, rental.actual_return_date)
        db.session.commit()
    except StaleDataError as err:
        db.session.rollback()
        raise ConcurrentUpdate() from err
    except Exception:
        db.session.rollback()
        raise

    return rental


def get_rental_by_id(rental_id: int, user_id: int | None = None) -> Rental:
    rental: Rental | None = db.session.get(Rental, rental_id)
    if not rental:
        raise RentalNotFound()
    if user_id is not None:
        _require_owner(rental, user_id)
    return rental


def get_user_rentals(user_id: int, active_only: bool = False) -> list[Rental]:
    q = Rental.query.filter(Rental.user_id == user_id)
    if active_only:
        q = q.filter(Rental.rental_status.notin_(TERMINAL_RENTAL_STATUSES))
    return q.order_by(Rental.created_at.desc(), Rental.id.desc()).all()


def list_rentals(filters: dict | None = None, page: int | str = 1, per_page: int | str = 10) -> dict:
    """Admin listing. Date filters apply to the rental start date."""
    filters = filters or {}
    page_int, per_page_int = page_args(page, per_page)

    query = Rental.query
    if filters.get("status"):
        query = query.filter(Rental.rental_status == parse_rental_status(filters["status"]))
    if filters.get("user_id"):
        query = query.filter(Rental.user_id == filters["user_id"])
    if filters.get("start_date"):
        query = query.filter(Rental.rental_start_date >= filters["start_date"])
    if filters.get("end_date"):
        query = query.filter(Rental.rental_start_date <= filters["end_date"])

    total = query.count()
    items = (
        query.order_by(Rental.created_at.desc(), Rental.id.desc())
        .offset((page_int - 1) * per_page_int)
        .limit(per_page_int)
        .all()
    )

    return {
        "page": page_int,
        "per_page": per_page_int,
        "total": int(total),
        "items": [rental_to_dict(r) for r in items],
    }


def rental_to_dict(rental: Rental) -> dict:
    product = rental.product
    variant = rental.variant
    return {
        "id": rental.id,
        "order_id": rental.order_id,
        "user_id": rental.user_id,
        "product_id": rental.product_id,
        "variant_id": rental.variant_id,
        "rental_start_date": rental.rental_start_date.isoformat() if rental.rental_start_date else None,
        "rental_end_date": rental.rental_end_date.isoformat() if rental.rental_end_date else None,
        "actual_return_date": rental.actual_return_date.isoformat() if rental.actual_return_date else None,
        "rental_days": rental.rental_days,
        "daily_rate": float(rental.daily_rate),
        "total_rental_amount": float(rental.total_rental_amount),
        "security_deposit": float(rental.security_deposit),
        "late_fee": float(rental.late_fee or 0),
        "damage_charges": float(rental.damage_charges or 0),
        "refund_amount": float(rental.refund_amount or 0),
        "rental_status": rental.rental_status.value,
        "deposit_status": rental.deposit_status.value,
        "delivery_type": rental.delivery_type.value,
        "is_extended": bool(rental.is_extended),
        "extension_count": rental.extension_count,
        "created_at": rental.created_at.isoformat() if rental.created_at else None,
        "product": {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
        }
        if product
        else None,
        "variant": {
            "id": variant.id,
            "sku_variant": variant.sku_variant,
            "size": variant.size,
            "color": variant.color,
        }
        if variant
        else None,
    }
