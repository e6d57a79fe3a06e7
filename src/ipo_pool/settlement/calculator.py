"""
Allotment settlement for a single pool.

Turns a pool's total contribution, the IPO lot terms and the recorded
allotment outcome into the amount returned to the pool and the commission
kept by the account owner.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from ipo_pool.models import AllotmentOutcome, IPOLotTerms, SettlementResult
from ipo_pool.settlement.money import ZERO, round_money


class InvalidInputError(ValueError):
    """Raised when settlement or distribution inputs violate a precondition."""
    pass


@dataclass(frozen=True)
class AllotmentBreakdown:
    """
    Intermediate values of an allotted settlement.

    Attributes:
        lots_won: Whole lots the pool's money could fund
        used_investment: lots_won * lot_price
        unused_remainder: Money that could not buy a whole lot (refunded)
        shares_won: lots_won * shares_per_lot
        sale_value: shares_won * selling_price
        gross_profit: sale_value - used_investment (negative on a loss)
        commission_deducted: Commission on positive gross profit only
        final_amount: sale_value + unused_remainder - commission_deducted
    """
    lots_won: int
    used_investment: Decimal
    unused_remainder: Decimal
    shares_won: int
    sale_value: Decimal
    gross_profit: Decimal
    commission_deducted: Decimal
    final_amount: Decimal


def settlement_breakdown(
    total_contribution: Decimal,
    lot_terms: IPOLotTerms,
    selling_price: Decimal,
    commission_rate_pct: Decimal,
) -> AllotmentBreakdown:
    """
    Compute every intermediate value of an allotted settlement.

    Only whole lots are bought; money short of a full lot is refunded.
    Commission applies to positive gross profit, never to a loss or to the
    refunded remainder.

    Args:
        total_contribution: Pool total
        lot_terms: IPO lot economics
        selling_price: Per-share selling price
        commission_rate_pct: Commission rate in percent

    Returns:
        AllotmentBreakdown with cent-rounded monetary values

    Raises:
        InvalidInputError: If any input is negative
    """
    total_contribution = _non_negative(total_contribution, "total_contribution")
    lot_price = _non_negative(lot_terms.lot_price, "lot_price")
    selling_price = _non_negative(selling_price, "selling_price")
    commission_rate_pct = _non_negative(commission_rate_pct, "commission_rate_pct")
    if lot_terms.shares_per_lot < 0:
        raise InvalidInputError(
            f"shares_per_lot must be >= 0, got {lot_terms.shares_per_lot}"
        )

    if lot_price == ZERO:
        lots_won = 0
    else:
        lots_won = int(total_contribution // lot_price)

    used_investment = lots_won * lot_price
    unused_remainder = total_contribution - used_investment
    shares_won = lots_won * lot_terms.shares_per_lot

    sale_value = round_money(shares_won * selling_price)
    gross_profit = round_money(sale_value - used_investment)

    if gross_profit > ZERO:
        commission = round_money(gross_profit * commission_rate_pct / Decimal("100"))
    else:
        commission = ZERO

    final_amount = round_money(sale_value + unused_remainder - commission)

    return AllotmentBreakdown(
        lots_won=lots_won,
        used_investment=used_investment,
        unused_remainder=unused_remainder,
        shares_won=shares_won,
        sale_value=sale_value,
        gross_profit=gross_profit,
        commission_deducted=commission,
        final_amount=final_amount,
    )


def settle(
    total_contribution: Decimal,
    lot_terms: IPOLotTerms,
    outcome: AllotmentOutcome,
    participant_ids: tuple[str, ...] = (),
    demat_account_id: Optional[str] = None,
) -> SettlementResult:
    """
    Settle a pool for one IPO.

    A pool that was not allotted gets its full contribution back, rounded to
    cents, with no commission. An allotted pool receives the sale value of
    the shares won plus the unexpended remainder, less commission on
    positive gross profit.

    Calling this again with the same inputs yields an equal result (apart
    from the generated ``result_id``), so an edited outcome is handled by
    recomputing and replacing the stored result.

    Args:
        total_contribution: Sum of the pool's contributions
        lot_terms: IPO lot economics
        outcome: Recorded allotment outcome
        participant_ids: Pool membership to snapshot on the result
        demat_account_id: Account whose pool is being settled

    Returns:
        SettlementResult

    Raises:
        InvalidInputError: If a precondition is violated
    """
    total_contribution = _non_negative(total_contribution, "total_contribution")
    _non_negative(lot_terms.lot_price, "lot_price")
    commission_rate = _non_negative(outcome.commission_rate_pct, "commission_rate_pct")

    if not outcome.is_allotted:
        return SettlementResult(
            is_allotted=False,
            selling_price=None,
            commission_deducted=ZERO,
            final_amount=round_money(total_contribution),
            participant_ids=tuple(participant_ids),
            demat_account_id=demat_account_id,
        )

    if outcome.selling_price is None:
        raise InvalidInputError("selling_price is required for an allotted outcome")

    breakdown = settlement_breakdown(
        total_contribution=total_contribution,
        lot_terms=lot_terms,
        selling_price=outcome.selling_price,
        commission_rate_pct=commission_rate,
    )

    return SettlementResult(
        is_allotted=True,
        selling_price=coerce_amount(outcome.selling_price, "selling_price"),
        commission_deducted=breakdown.commission_deducted,
        final_amount=breakdown.final_amount,
        participant_ids=tuple(participant_ids),
        demat_account_id=demat_account_id,
    )


def coerce_amount(value: Any, field_name: str) -> Decimal:
    """Convert a numeric value to a finite Decimal or raise InvalidInputError."""
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field_name} must be a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (ArithmeticError, ValueError):
        raise InvalidInputError(f"{field_name} must be a number, got {value!r}")
    if not result.is_finite():
        raise InvalidInputError(f"{field_name} must be finite, got {value!r}")
    return result


def _non_negative(value: Any, field_name: str) -> Decimal:
    result = coerce_amount(value, field_name)
    if result < ZERO:
        raise InvalidInputError(f"{field_name} must be >= 0, got {result}")
    return result
