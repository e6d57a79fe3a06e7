"""
Recording allotment results for the pools of an IPO.

Resolves a pool from the IPO's roster, settles it, and stores the result
with a snapshot of the pool's membership. Re-recording an account replaces
its earlier result.
"""

from decimal import Decimal
from typing import Iterable, Optional

from ipo_pool.models import (
    AllotmentOutcome,
    DematAccount,
    IPORecord,
    Participant,
    ParticipantDistribution,
    SettlementResult,
)
from ipo_pool.pools.roster import (
    account_total,
    contributors_for,
    participants_in_account,
)
from ipo_pool.settlement import distribute, settle
from ipo_pool.settlement.money import ZERO, sum_money


class ResultError(Exception):
    """Raised when a result cannot be recorded for a pool."""
    pass


def record_result(
    ipo: IPORecord,
    account: DematAccount,
    is_allotted: bool,
    selling_price: Optional[Decimal] = None,
) -> tuple[IPORecord, SettlementResult]:
    """
    Record the allotment outcome of one account's pool.

    Args:
        ipo: IPO the result belongs to
        account: Demat account whose pool is settled
        is_allotted: Whether the pool was allotted
        selling_price: Per-share selling price (required when allotted)

    Returns:
        Tuple of (updated IPORecord, recorded SettlementResult)

    Raises:
        ResultError: If the pool is empty or lot terms are missing
        InvalidInputError: If the settlement inputs are invalid
    """
    members = participants_in_account(ipo.participants, account.account_id)
    if not members:
        raise ResultError(
            f"Account {account.account_name} has no participants in {ipo.details.name}"
        )

    lot_terms = ipo.details.lot_terms
    if is_allotted and lot_terms.lot_price <= ZERO:
        raise ResultError(f"Lot price is not set for {ipo.details.name}")

    outcome = AllotmentOutcome(
        is_allotted=is_allotted,
        selling_price=selling_price if is_allotted else None,
        commission_rate_pct=account.commission_rate,
    )
    result = settle(
        total_contribution=account_total(members, account.account_id),
        lot_terms=lot_terms,
        outcome=outcome,
        participant_ids=tuple(p.participant_id for p in members),
        demat_account_id=account.account_id,
    )

    results = list(ipo.results)
    for index, existing in enumerate(results):
        if existing.demat_account_id == account.account_id:
            results[index] = result
            break
    else:
        results.append(result)

    return ipo.with_results(results), result


def result_for_account(ipo: IPORecord, account_id: str) -> Optional[SettlementResult]:
    """The recorded result of an account's pool, if any."""
    for result in ipo.results:
        if result.demat_account_id == account_id:
            return result
    return None


def unprocessed_accounts(
    ipo: IPORecord,
    accounts: Iterable[DematAccount],
) -> list[DematAccount]:
    """Accounts that have participants in the IPO but no recorded result."""
    return [
        account
        for account in accounts
        if result_for_account(ipo, account.account_id) is None
        and participants_in_account(ipo.participants, account.account_id)
    ]


def snapshot_members(
    result: SettlementResult,
    participants: Iterable[Participant],
) -> list[Participant]:
    """
    Participants named in a result's membership snapshot.

    Snapshot order is kept. Members removed from the roster since the
    result was recorded are skipped.
    """
    by_id = {p.participant_id: p for p in participants}
    return [by_id[pid] for pid in result.participant_ids if pid in by_id]


def distribute_result(
    result: SettlementResult,
    participants: Iterable[Participant],
) -> list[ParticipantDistribution]:
    """
    Split a recorded result among the members of its snapshot.

    Raises:
        InvalidInputError: If none of the snapshot members remain
        DegeneratePoolError: If their contributions sum to zero
    """
    members = snapshot_members(result, participants)
    return distribute(result, contributors_for(members))


def snapshot_investment(
    result: SettlementResult,
    participants: Iterable[Participant],
) -> Decimal:
    """Total contribution of a result's snapshot members."""
    return sum_money(p.investment_amount for p in snapshot_members(result, participants))
