"""Money helpers. All amounts are base-currency floats rounded to cents."""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round2(amount: float | int) -> float:
    """Round half-up to two decimals.

    Goes through ``str`` so that 0.125 rounds to 0.13 rather than following
    the binary representation.
    """
    return float(Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))


def money_sum(amounts) -> float:
    """Sum already-rounded amounts, rounding the total once more."""
    return round2(sum((Decimal(str(a)) for a in amounts), Decimal("0")))
