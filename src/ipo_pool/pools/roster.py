"""
Demat account and participant rosters.

Pool membership is a back-reference from Participant to DematAccount:
a pool is every participant whose ``demat_account_id`` matches the account.
Lookups scan the roster; no index is kept.
"""

from decimal import Decimal
from typing import Iterable, Optional

from ipo_pool.models import (
    Contribution,
    DematAccount,
    IPOLotTerms,
    IPORecord,
    Participant,
)
from ipo_pool.settlement.money import ZERO, sum_money


MAX_COMMISSION_RATE = Decimal("100")


class RosterError(Exception):
    """Raised when a roster change is not allowed."""
    pass


def find_account(
    accounts: Iterable[DematAccount],
    account_id: str,
) -> Optional[DematAccount]:
    """Return the account with the given id, or None."""
    for account in accounts:
        if account.account_id == account_id:
            return account
    return None


def add_demat_account(
    accounts: list[DematAccount],
    account_name: str,
    owner_name: str,
    commission_rate: Decimal,
) -> tuple[list[DematAccount], DematAccount]:
    """
    Add a demat account to the roster.

    Args:
        accounts: Current accounts
        account_name: Display name of the account
        owner_name: Account holder
        commission_rate: Percent of gross profit kept by the owner (0-100)

    Returns:
        Tuple of (new account list, created account)

    Raises:
        RosterError: If a field is missing or the rate is out of range
    """
    account_name = (account_name or "").strip()
    owner_name = (owner_name or "").strip()
    if not account_name or not owner_name:
        raise RosterError("Account name and owner name are required")

    if commission_rate is None:
        raise RosterError("Commission rate is required")
    if commission_rate < ZERO or commission_rate > MAX_COMMISSION_RATE:
        raise RosterError(
            f"Commission rate must be between 0 and {MAX_COMMISSION_RATE}, "
            f"got {commission_rate}"
        )

    account = DematAccount.create(
        account_name=account_name,
        owner_name=owner_name,
        commission_rate=commission_rate,
    )
    return [*accounts, account], account


def remove_demat_account(
    accounts: list[DematAccount],
    account_id: str,
    ipos: Iterable[IPORecord] = (),
) -> list[DematAccount]:
    """
    Remove a demat account.

    An account that still has participants assigned in any IPO cannot be
    removed; they have to be reassigned or removed first.

    Raises:
        RosterError: If the account is unknown or still has participants
    """
    if find_account(accounts, account_id) is None:
        raise RosterError(f"Unknown demat account: {account_id}")

    for ipo in ipos:
        if any(p.demat_account_id == account_id for p in ipo.participants):
            raise RosterError(
                "This account has participants assigned. Please reassign them first."
            )

    return [a for a in accounts if a.account_id != account_id]


def add_participant(
    participants: list[Participant],
    accounts: Iterable[DematAccount],
    name: str,
    investment_amount: Decimal,
    demat_account_id: str,
) -> tuple[list[Participant], Participant]:
    """
    Add a participant to an IPO's roster.

    Args:
        participants: Current participants of the IPO
        accounts: Known demat accounts
        name: Participant name
        investment_amount: Money contributed (must be positive)
        demat_account_id: Account whose pool the money joins

    Returns:
        Tuple of (new participant list, created participant)

    Raises:
        RosterError: If a field is missing, the amount is not positive,
            or the account is unknown
    """
    name = (name or "").strip()
    if not name:
        raise RosterError("Participant name is required")

    if investment_amount is None or investment_amount <= ZERO:
        raise RosterError(f"Investment amount must be positive, got {investment_amount}")

    if find_account(accounts, demat_account_id) is None:
        raise RosterError(f"Unknown demat account: {demat_account_id}")

    participant = Participant.create(
        name=name,
        investment_amount=investment_amount,
        demat_account_id=demat_account_id,
    )
    return [*participants, participant], participant


def remove_participant(
    participants: list[Participant],
    participant_id: str,
) -> list[Participant]:
    """
    Remove a participant from an IPO's roster.

    Results already recorded keep their membership snapshot.

    Raises:
        RosterError: If the participant is unknown
    """
    remaining = [p for p in participants if p.participant_id != participant_id]
    if len(remaining) == len(participants):
        raise RosterError(f"Unknown participant: {participant_id}")
    return remaining


def participants_in_account(
    participants: Iterable[Participant],
    account_id: str,
) -> list[Participant]:
    """Participants whose money sits in the given account's pool."""
    return [p for p in participants if p.demat_account_id == account_id]


def account_total(participants: Iterable[Participant], account_id: str) -> Decimal:
    """Total contribution of the given account's pool."""
    return sum_money(
        p.investment_amount for p in participants_in_account(participants, account_id)
    )


def account_participant_count(participants: Iterable[Participant], account_id: str) -> int:
    return len(participants_in_account(participants, account_id))


def contributors_for(participants: Iterable[Participant]) -> list[Contribution]:
    """Contribution records for the distribution engine."""
    return [p.as_contribution() for p in participants]


def shares_for_investment(investment_amount: Decimal, lot_terms: IPOLotTerms) -> Decimal:
    """
    Shares an amount would buy at the issue price.

    Returns 0 when the issue price is not yet known.
    """
    if lot_terms.issue_price == ZERO:
        return ZERO
    return investment_amount / lot_terms.issue_price


def ownership_percentage(
    investment_amount: Decimal,
    account_id: str,
    participants: Iterable[Participant],
) -> Decimal:
    """
    Percentage of an account's pool a new contribution would own.

    The amount is added to the pool's current total before dividing, so
    this previews a participant that has not been added yet.
    """
    pool_total = account_total(participants, account_id) + investment_amount
    if pool_total == ZERO:
        return ZERO
    return investment_amount / pool_total * Decimal("100")
