"""
Cross-IPO views: the IPO overview table, workbook totals and the
consolidated participant view.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from ipo_pool.models import DematAccount, IPORecord, Workbook
from ipo_pool.pools.results import distribute_result, snapshot_members
from ipo_pool.pools.roster import find_account
from ipo_pool.settlement.money import ZERO, sum_money


STATUS_SETUP_REQUIRED = "Setup Required"
STATUS_NO_PARTICIPANTS = "No Participants"
STATUS_PENDING_RESULTS = "Pending Results"
STATUS_ACTIVE = "Active"


def ipo_status(ipo: IPORecord) -> str:
    """Where an IPO stands in its setup-to-settlement lifecycle."""
    if not ipo.details.name or ipo.details.lot_terms.issue_price == ZERO:
        return STATUS_SETUP_REQUIRED
    if not ipo.participants:
        return STATUS_NO_PARTICIPANTS
    if not ipo.results:
        return STATUS_PENDING_RESULTS
    return STATUS_ACTIVE


def ipo_overview(ipos: Iterable[IPORecord]) -> list[dict]:
    """
    One overview row per IPO.

    Returns:
        List of dictionaries with:
        - ipo_id, name, status, issue_price
        - participant_count: Number of participants
        - total_investment: Sum of contributions
        - total_shares: Shares the investment buys at the issue price
        - results_count: Recorded results
    """
    rows = []
    for ipo in ipos:
        issue_price = ipo.details.lot_terms.issue_price
        total_investment = ipo.total_investment
        rows.append({
            "ipo_id": ipo.ipo_id,
            "name": ipo.details.name,
            "status": ipo_status(ipo),
            "issue_price": issue_price,
            "participant_count": len(ipo.participants),
            "total_investment": total_investment,
            "total_shares": total_investment / issue_price if issue_price > ZERO else ZERO,
            "results_count": len(ipo.results),
        })
    return rows


def workbook_totals(workbook: Workbook) -> dict[str, Decimal | int]:
    """Totals across every IPO in the workbook."""
    return {
        "ipo_count": len(workbook.ipos),
        "account_count": len(workbook.demat_accounts),
        "total_participants": sum(len(ipo.participants) for ipo in workbook.ipos),
        "total_investment": sum_money(ipo.total_investment for ipo in workbook.ipos),
        "total_results": sum(len(ipo.results) for ipo in workbook.ipos),
    }


@dataclass
class ConsolidatedEntry:
    """A participant's position in one IPO."""
    ipo_id: str
    ipo_name: str
    investment: Decimal
    is_allotted: Optional[bool] = None
    net_profit: Optional[Decimal] = None

    @property
    def status(self) -> str:
        if self.is_allotted is None:
            return "Pending"
        return "Allotted" if self.is_allotted else "Not Allotted"


@dataclass
class ConsolidatedParticipant:
    """
    A participant across all IPOs.

    Participants are matched by name and demat account, since every IPO
    keeps its own roster.
    """
    name: str
    demat_account_id: str
    account_name: str
    entries: dict[str, ConsolidatedEntry] = field(default_factory=dict)

    @property
    def total_investment(self) -> Decimal:
        return sum_money(e.investment for e in self.entries.values())

    @property
    def total_profit(self) -> Decimal:
        return sum_money(
            e.net_profit for e in self.entries.values() if e.net_profit is not None
        )


def consolidated_participants(
    ipos: Iterable[IPORecord],
    accounts: Iterable[DematAccount],
) -> list[ConsolidatedParticipant]:
    """
    Build the consolidated participant view across IPOs.

    Args:
        ipos: All IPOs
        accounts: Known demat accounts

    Returns:
        List of ConsolidatedParticipant in first-seen order
    """
    accounts = list(accounts)
    by_key: dict[tuple[str, str], ConsolidatedParticipant] = {}

    for ipo in ipos:
        profits: dict[str, Decimal] = {}
        allotted: dict[str, bool] = {}
        for result in ipo.results:
            if not snapshot_members(result, ipo.participants):
                continue
            for dist in distribute_result(result, ipo.participants):
                profits[dist.participant_id] = dist.individual_profit
                allotted[dist.participant_id] = result.is_allotted

        for participant in ipo.participants:
            key = (participant.name, participant.demat_account_id)
            if key not in by_key:
                account = find_account(accounts, participant.demat_account_id)
                by_key[key] = ConsolidatedParticipant(
                    name=participant.name,
                    demat_account_id=participant.demat_account_id,
                    account_name=account.account_name if account else "Unknown Account",
                )

            by_key[key].entries[ipo.ipo_id] = ConsolidatedEntry(
                ipo_id=ipo.ipo_id,
                ipo_name=ipo.details.name,
                investment=participant.investment_amount,
                is_allotted=allotted.get(participant.participant_id),
                net_profit=profits.get(participant.participant_id),
            )

    return list(by_key.values())
