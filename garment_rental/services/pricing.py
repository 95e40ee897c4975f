"""
Money and calendar arithmetic for rentals and sales.

Everything here is a pure function over plain values: the services load
rows, call these, and copy the results back onto the models. Nothing is
recomputed implicitly on save.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from math import ceil

from garment_rental.models.rental import DepositStatus
from garment_rental.utils.errors import InvalidDateRange


MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0.00")
SECONDS_PER_DAY = 86400

DEFAULT_LATE_FEE_MULTIPLIER = Decimal("0.5")
DEFAULT_SALES_TAX_RATE = Decimal("0.18")


def to_money(value) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def days_between(start, end) -> int:
    """
    Whole days from ``start`` to ``end``, rounded up.

    Accepts dates or datetimes (mixed values are compared at midnight).
    Negative or zero spans come back as <= 0; callers decide what that means.
    """
    if isinstance(start, datetime) != isinstance(end, datetime):
        start = _as_datetime(start)
        end = _as_datetime(end)
    delta: timedelta = end - start
    return ceil(delta.total_seconds() / SECONDS_PER_DAY)


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


@dataclass(frozen=True)
class PricingSnapshot:
    """Catalog prices as they were when the booking was made."""

    product_id: int
    daily_rate: Decimal
    security_deposit: Decimal


def snapshot_from_price(price) -> PricingSnapshot:
    return PricingSnapshot(
        product_id=price.product_id,
        daily_rate=to_money(price.rental_price_per_day),
        security_deposit=to_money(price.security_deposit),
    )


@dataclass(frozen=True)
class RentalQuote:
    rental_days: int
    daily_rate: Decimal
    total_rental_amount: Decimal
    security_deposit: Decimal

    @property
    def amount_due(self) -> Decimal:
        return self.total_rental_amount + self.security_deposit


def rental_days_for(start, end) -> int:
    days = days_between(start, end)
    if days < 1:
        raise InvalidDateRange()
    return days


def quote_rental(snapshot: PricingSnapshot, start, end) -> RentalQuote:
    days = rental_days_for(start, end)
    return RentalQuote(
        rental_days=days,
        daily_rate=snapshot.daily_rate,
        total_rental_amount=to_money(snapshot.daily_rate * days),
        security_deposit=snapshot.security_deposit,
    )


@dataclass(frozen=True)
class ExtensionQuote:
    new_end_date: date
    additional_days: int
    additional_cost: Decimal


def quote_extension(daily_rate, current_end, new_end) -> ExtensionQuote:
    if new_end <= current_end:
        raise InvalidDateRange("New end date must be after current end date")
    additional_days = days_between(current_end, new_end)
    return ExtensionQuote(
        new_end_date=new_end,
        additional_days=additional_days,
        additional_cost=to_money(to_money(daily_rate) * additional_days),
    )


@dataclass(frozen=True)
class ReturnSettlement:
    actual_return_date: date
    days_late: int
    late_fee: Decimal
    damage_charges: Decimal
    refund_amount: Decimal
    deposit_status: DepositStatus


def settle_return(
    *,
    daily_rate,
    security_deposit,
    rental_end_date,
    returned_on,
    damage_charges=None,
    late_fee_multiplier=DEFAULT_LATE_FEE_MULTIPLIER,
) -> ReturnSettlement:
    days_late = 0
    late_fee = ZERO
    if returned_on > rental_end_date:
        days_late = days_between(rental_end_date, returned_on)
        late_fee = to_money(to_money(daily_rate) * Decimal(str(late_fee_multiplier)) * days_late)

    damage = to_money(damage_charges)
    refund = to_money(security_deposit) - late_fee - damage
    if refund < ZERO:
        refund = ZERO

    if late_fee == ZERO and damage == ZERO:
        deposit_status = DepositStatus.REFUNDED
    else:
        deposit_status = DepositStatus.PARTIALLY_REFUNDED

    return ReturnSettlement(
        actual_return_date=returned_on,
        days_late=days_late,
        late_fee=late_fee,
        damage_charges=damage,
        refund_amount=to_money(refund),
        deposit_status=deposit_status,
    )


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


def order_totals(line_subtotals, tax_rate=DEFAULT_SALES_TAX_RATE) -> OrderTotals:
    subtotal = to_money(sum((to_money(x) for x in line_subtotals), ZERO))
    tax = to_money(subtotal * Decimal(str(tax_rate)))
    # Free shipping and no coupons on this path for now
    shipping = ZERO
    discount = ZERO
    return OrderTotals(
        subtotal=subtotal,
        tax_amount=tax,
        shipping_amount=shipping,
        discount_amount=discount,
        total_amount=to_money(subtotal + tax + shipping - discount),
    )
