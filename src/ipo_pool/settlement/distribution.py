"""
Proportional distribution of a settled pool among its contributors.

Each contributor receives the pool's final amount in proportion to the money
they put in. Returns are rounded to cents and then reconciled so that they
add up to the pool's final amount exactly.
"""

from decimal import Decimal
from typing import Iterable

from ipo_pool.models import Contribution, ParticipantDistribution, SettlementResult
from ipo_pool.settlement.calculator import InvalidInputError, coerce_amount
from ipo_pool.settlement.money import ZERO, round_money, sum_money


class DegeneratePoolError(InvalidInputError):
    """Raised when a pool with zero total contribution is distributed."""
    pass


def distribute(
    settlement: SettlementResult,
    contributors: Iterable[Contribution],
) -> list[ParticipantDistribution]:
    """
    Split a settlement among the contributors of its pool.

    Args:
        settlement: Settled result of the pool
        contributors: Contributions of the pool members, in display order

    Returns:
        One ParticipantDistribution per contributor, in input order

    Raises:
        InvalidInputError: If contributors is empty or an amount is negative
        DegeneratePoolError: If the contributions sum to zero
    """
    contributors = list(contributors)
    if not contributors:
        raise InvalidInputError("Cannot distribute a pool with no contributors")

    amounts = []
    for contributor in contributors:
        amount = coerce_amount(contributor.investment_amount, "investment_amount")
        if amount < ZERO:
            raise InvalidInputError(
                f"investment_amount must be >= 0, got {amount} "
                f"for participant {contributor.participant_id}"
            )
        amounts.append(amount)

    total_contribution = sum_money(amounts)
    if total_contribution == ZERO:
        raise DegeneratePoolError("Cannot distribute a pool with zero total contribution")

    final_amount = settlement.final_amount

    fractions = [amount / total_contribution for amount in amounts]
    returns = [round_money(final_amount * fraction) for fraction in fractions]

    # Residual from independent rounding goes to the largest contributor
    residual = final_amount - sum_money(returns)
    if residual != ZERO:
        largest = _index_of_largest(amounts)
        returns[largest] += residual

    return [
        ParticipantDistribution(
            participant_id=contributor.participant_id,
            share_fraction=fraction,
            individual_return=individual_return,
            individual_profit=individual_return - amount,
        )
        for contributor, amount, fraction, individual_return in zip(
            contributors, amounts, fractions, returns
        )
    ]


def _index_of_largest(amounts: list[Decimal]) -> int:
    """Index of the largest amount; the earliest one wins a tie."""
    largest = 0
    for index, amount in enumerate(amounts):
        if amount > amounts[largest]:
            largest = index
    return largest


def total_distributed(distributions: list[ParticipantDistribution]) -> Decimal:
    """Sum of individual returns across a distribution."""
    return sum_money(d.individual_return for d in distributions)
