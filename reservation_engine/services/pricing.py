"""Stay pricing and cents conversion."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def nights_between(check_in: date, check_out: date) -> int:
    """Nights in ``[check_in, check_out)``, never fewer than one."""
    return max((check_out - check_in).days, 1)


def price_stay(nightly_rate: Decimal, check_in: date, check_out: date) -> Decimal:
    """Total price of a stay at ``nightly_rate``.

    A stay whose check-out does not follow its check-in is still charged
    one night.
    """
    nights = nights_between(check_in, check_out)
    return (Decimal(nightly_rate) * nights).quantize(_CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Convert a currency amount to integer cents, rounding half up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def price_difference_cents(old_total: Decimal, new_total: Decimal) -> int:
    """Signed difference ``new - old`` in cents. Negative means money goes back."""
    return to_cents(Decimal(new_total) - Decimal(old_total))
