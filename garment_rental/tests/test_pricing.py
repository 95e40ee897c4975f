from datetime import date, datetime
from decimal import Decimal

import pytest

from garment_rental.models.rental import DepositStatus
from garment_rental.services.pricing import (
	PricingSnapshot,
	days_between,
	order_totals,
	quote_extension,
	quote_rental,
	rental_days_for,
	settle_return,
)
from garment_rental.utils.errors import InvalidDateRange


def _snapshot(rate="500.00", deposit="2000.00") -> PricingSnapshot:
	return PricingSnapshot(product_id=1, daily_rate=Decimal(rate), security_deposit=Decimal(deposit))


def test_days_between_rounds_partial_days_up():
	assert days_between(date(2024, 1, 1), date(2024, 1, 5)) == 4
	assert days_between(datetime(2024, 1, 1, 10, 0), datetime(2024, 1, 2, 11, 0)) == 2
	assert days_between(date(2024, 1, 5), date(2024, 1, 5)) == 0


def test_rental_days_requires_at_least_one_day():
	with pytest.raises(InvalidDateRange):
		rental_days_for(date(2024, 1, 5), date(2024, 1, 5))
	with pytest.raises(InvalidDateRange):
		rental_days_for(date(2024, 1, 5), date(2024, 1, 1))


def test_quote_rental_freezes_rate_and_deposit():
	quote = quote_rental(_snapshot(), date(2024, 1, 1), date(2024, 1, 5))

	assert quote.rental_days == 4
	assert quote.daily_rate == Decimal("500.00")
	assert quote.total_rental_amount == Decimal("2000.00")
	assert quote.security_deposit == Decimal("2000.00")
	assert quote.amount_due == Decimal("4000.00")


def test_quote_extension():
	q = quote_extension(Decimal("500.00"), date(2024, 1, 5), date(2024, 1, 8))
	assert q.additional_days == 3
	assert q.additional_cost == Decimal("1500.00")
	assert q.new_end_date == date(2024, 1, 8)


@pytest.mark.parametrize("new_end", [date(2024, 1, 5), date(2024, 1, 4)])
def test_quote_extension_rejects_non_later_end(new_end):
	with pytest.raises(InvalidDateRange):
		quote_extension(Decimal("500.00"), date(2024, 1, 5), new_end)


def test_settle_return_late():
	s = settle_return(
		daily_rate=Decimal("500.00"),
		security_deposit=Decimal("2000.00"),
		rental_end_date=date(2024, 1, 5),
		returned_on=date(2024, 1, 7),
	)
	assert s.days_late == 2
	assert s.late_fee == Decimal("500.00")
	assert s.refund_amount == Decimal("1500.00")
	assert s.deposit_status == DepositStatus.PARTIALLY_REFUNDED


def test_settle_return_on_time_refunds_everything():
	s = settle_return(
		daily_rate=Decimal("500.00"),
		security_deposit=Decimal("2000.00"),
		rental_end_date=date(2024, 1, 5),
		returned_on=date(2024, 1, 5),
	)
	assert s.late_fee == Decimal("0.00")
	assert s.refund_amount == Decimal("2000.00")
	assert s.deposit_status == DepositStatus.REFUNDED


def test_settle_return_refund_never_negative():
	s = settle_return(
		daily_rate=Decimal("500.00"),
		security_deposit=Decimal("1000.00"),
		rental_end_date=date(2024, 1, 5),
		returned_on=date(2024, 1, 15),
		damage_charges=Decimal("300.00"),
	)
	# 500 * 0.5 * 10 = 2500 late fee, plus damage, exceeds the deposit
	assert s.late_fee == Decimal("2500.00")
	assert s.refund_amount == Decimal("0.00")
	assert s.deposit_status == DepositStatus.PARTIALLY_REFUNDED


def test_settle_return_damage_only():
	s = settle_return(
		daily_rate=Decimal("500.00"),
		security_deposit=Decimal("2000.00"),
		rental_end_date=date(2024, 1, 5),
		returned_on=date(2024, 1, 3),
		damage_charges=Decimal("250.00"),
	)
	assert s.late_fee == Decimal("0.00")
	assert s.refund_amount == Decimal("1750.00")
	assert s.deposit_status == DepositStatus.PARTIALLY_REFUNDED


def test_settle_return_custom_multiplier():
	s = settle_return(
		daily_rate=Decimal("400.00"),
		security_deposit=Decimal("2000.00"),
		rental_end_date=date(2024, 1, 5),
		returned_on=date(2024, 1, 6),
		late_fee_multiplier=Decimal("1"),
	)
	assert s.late_fee == Decimal("400.00")
	assert s.refund_amount == Decimal("1600.00")


def test_order_totals_apply_tax_to_subtotal():
	totals = order_totals([Decimal("1000.00"), Decimal("500.50")], Decimal("0.18"))

	assert totals.subtotal == Decimal("1500.50")
	assert totals.tax_amount == Decimal("270.09")
	assert totals.shipping_amount == Decimal("0.00")
	assert totals.discount_amount == Decimal("0.00")
	assert totals.total_amount == Decimal("1770.59")
