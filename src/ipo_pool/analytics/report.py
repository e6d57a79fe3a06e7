"""
Final report calculations for a single IPO.

Builds the overall summary, the individual participant returns and the
per-account settlement summary from the recorded results.
"""

from decimal import Decimal
from typing import Iterable

from ipo_pool.models import (
    AccountSummaryRow,
    DematAccount,
    IPORecord,
    ParticipantReportRow,
)
from ipo_pool.pools.results import distribute_result, snapshot_investment, snapshot_members
from ipo_pool.pools.roster import find_account
from ipo_pool.settlement.money import ZERO, sum_money


UNKNOWN = "Unknown"


def summarize_ipo(ipo: IPORecord) -> dict[str, Decimal | int]:
    """
    Calculate summary statistics for an IPO.

    Args:
        ipo: IPO with participants and recorded results

    Returns:
        Dictionary with summary:
        - total_investment: Contributions of every participant
        - settled_investment: Contributions of pools with a result
        - total_returns: Sum of final amounts
        - total_commission: Sum of commission deducted
        - net_profit: total_returns - settled_investment
        - allotted_count: Results that were allotted
        - not_allotted_count: Results that were not allotted
        - total_lots_applied: Whole lots the total investment covers
    """
    total_investment = ipo.total_investment
    settled_investment = sum_money(
        snapshot_investment(r, ipo.participants) for r in ipo.results
    )
    total_returns = sum_money(r.final_amount for r in ipo.results)
    total_commission = sum_money(r.commission_deducted for r in ipo.results)

    lot_price = ipo.details.lot_terms.lot_price
    total_lots = int(total_investment // lot_price) if lot_price > ZERO else 0

    return {
        "total_investment": total_investment,
        "settled_investment": settled_investment,
        "total_returns": total_returns,
        "total_commission": total_commission,
        "net_profit": total_returns - settled_investment,
        "allotted_count": sum(1 for r in ipo.results if r.is_allotted),
        "not_allotted_count": sum(1 for r in ipo.results if not r.is_allotted),
        "total_lots_applied": total_lots,
    }


def participant_breakdown(
    ipo: IPORecord,
    accounts: Iterable[DematAccount],
) -> list[ParticipantReportRow]:
    """
    Individual returns of every participant, result by result.

    Results whose snapshot members have all left the roster are skipped.

    Args:
        ipo: IPO with participants and recorded results
        accounts: Known demat accounts

    Returns:
        List of ParticipantReportRow in result then snapshot order
    """
    accounts = list(accounts)
    rows = []

    for result in ipo.results:
        members = snapshot_members(result, ipo.participants)
        if not members:
            continue

        account = find_account(accounts, result.demat_account_id)
        by_id = {p.participant_id: p for p in members}

        for dist in distribute_result(result, members):
            participant = by_id[dist.participant_id]
            rows.append(
                ParticipantReportRow(
                    participant_id=participant.participant_id,
                    participant_name=participant.name,
                    investment_amount=participant.investment_amount,
                    account_name=account.account_name if account else UNKNOWN,
                    owner_name=account.owner_name if account else UNKNOWN,
                    is_allotted=result.is_allotted,
                    individual_return=dist.individual_return,
                    individual_profit=dist.individual_profit,
                    return_pct=_return_pct(
                        dist.individual_profit, participant.investment_amount
                    ),
                )
            )

    return rows


def account_summary(
    ipo: IPORecord,
    accounts: Iterable[DematAccount],
) -> list[AccountSummaryRow]:
    """One summary row per recorded result."""
    accounts = list(accounts)
    rows = []

    for result in ipo.results:
        account = find_account(accounts, result.demat_account_id)
        members = snapshot_members(result, ipo.participants)
        investment = sum_money(p.investment_amount for p in members)

        rows.append(
            AccountSummaryRow(
                account_id=result.demat_account_id or "",
                account_name=account.account_name if account else UNKNOWN,
                owner_name=account.owner_name if account else UNKNOWN,
                participant_names=tuple(p.name for p in members),
                total_investment=investment,
                is_allotted=result.is_allotted,
                selling_price=result.selling_price,
                final_amount=result.final_amount,
                commission_deducted=result.commission_deducted,
                net_profit=result.final_amount - investment,
            )
        )

    return rows


def _return_pct(profit: Decimal, investment: Decimal) -> Decimal:
    if investment == ZERO:
        return ZERO
    return profit / investment * Decimal("100")
