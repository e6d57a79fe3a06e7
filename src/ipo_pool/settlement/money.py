"""
Money helpers shared by the settlement components.

Amounts are Decimal throughout; each monetary sub-result is quantized to
cents with ROUND_HALF_UP as soon as it is produced.
"""

from decimal import Decimal, ROUND_HALF_UP


CENT = Decimal("0.01")
ZERO = Decimal("0")


def round_money(amount: Decimal) -> Decimal:
    """Round an amount to cents, half-up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(amounts) -> Decimal:
    """Sum an iterable of amounts, starting from Decimal zero."""
    return sum(amounts, ZERO)
