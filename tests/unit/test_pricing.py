"""Unit tests for stay pricing."""

from datetime import date
from decimal import Decimal

from reservation_engine.services.pricing import (
    nights_between,
    price_difference_cents,
    price_stay,
    to_cents,
)


def test_three_nights_at_hundred():
    assert price_stay(Decimal("100.00"), date(2025, 6, 1), date(2025, 6, 4)) == Decimal("300.00")


def test_same_day_stay_charges_one_night():
    assert nights_between(date(2025, 6, 1), date(2025, 6, 1)) == 1
    assert price_stay(Decimal("89.50"), date(2025, 6, 1), date(2025, 6, 1)) == Decimal("89.50")


def test_reversed_dates_charge_one_night():
    assert nights_between(date(2025, 6, 4), date(2025, 6, 1)) == 1


def test_price_across_month_boundary():
    assert price_stay(Decimal("129.99"), date(2025, 5, 30), date(2025, 6, 2)) == Decimal("389.97")


def test_price_has_two_decimal_places():
    assert price_stay(Decimal("100"), date(2025, 6, 1), date(2025, 6, 3)).as_tuple().exponent == -2


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("300.00")) == 30000
    assert to_cents(Decimal("0.005")) == 1
    assert to_cents(Decimal("0.004")) == 0
    assert to_cents(Decimal("19.995")) == 2000


def test_price_difference_sign():
    assert price_difference_cents(Decimal("300.00"), Decimal("450.00")) == 15000
    assert price_difference_cents(Decimal("450.00"), Decimal("300.00")) == -15000
    assert price_difference_cents(Decimal("300.00"), Decimal("300.00")) == 0
