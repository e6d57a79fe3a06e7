"""
Core data models for the IPO Pool Tracker.

This module defines the fundamental data structures used throughout the system,
including demat accounts, participants, lot terms, allotment outcomes and
settlement results. All monetary quantities use Decimal for precision.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Optional
import uuid


ZERO = Decimal("0")


class ActionType(Enum):
    """Types of logged actions for the decision log."""
    IPO_CREATED = "IPO_CREATED"
    IPO_UPDATED = "IPO_UPDATED"
    IPO_DELETED = "IPO_DELETED"
    ACCOUNT_ADDED = "ACCOUNT_ADDED"
    ACCOUNT_REMOVED = "ACCOUNT_REMOVED"
    PARTICIPANT_ADDED = "PARTICIPANT_ADDED"
    PARTICIPANT_REMOVED = "PARTICIPANT_REMOVED"
    RESULT_RECORDED = "RESULT_RECORDED"
    REPORT_EXPORTED = "REPORT_EXPORTED"
    CONFIG_LOADED = "CONFIG_LOADED"


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class IPOLotTerms:
    """
    Lot economics of an IPO.

    The issue price is derived from the lot price and shares per lot and
    is recomputed on every edit. Use ``create`` or the ``with_*`` methods
    rather than setting ``issue_price`` by hand.

    Attributes:
        lot_price: Price of one lot
        shares_per_lot: Number of shares in one lot
        issue_price: Per-share price (lot_price / shares_per_lot, or 0)
    """
    lot_price: Decimal = ZERO
    shares_per_lot: int = 0
    issue_price: Decimal = ZERO

    @classmethod
    def create(cls, lot_price: Decimal, shares_per_lot: int) -> "IPOLotTerms":
        """Build lot terms with the issue price derived from the inputs."""
        return cls(
            lot_price=lot_price,
            shares_per_lot=shares_per_lot,
            issue_price=derive_issue_price(lot_price, shares_per_lot),
        )

    def with_lot_price(self, lot_price: Decimal) -> "IPOLotTerms":
        return IPOLotTerms.create(lot_price, self.shares_per_lot)

    def with_shares_per_lot(self, shares_per_lot: int) -> "IPOLotTerms":
        return IPOLotTerms.create(self.lot_price, shares_per_lot)


def derive_issue_price(lot_price: Decimal, shares_per_lot: int) -> Decimal:
    """Issue price per share, zero unless both inputs are positive."""
    if lot_price > ZERO and shares_per_lot > 0:
        return lot_price / Decimal(shares_per_lot)
    return ZERO


@dataclass(frozen=True)
class AllotmentOutcome:
    """
    Allotment outcome recorded for one pool.

    Attributes:
        is_allotted: Whether the pool received an allotment
        selling_price: Per-share selling price (required when allotted)
        commission_rate_pct: Commission on positive gross profit, in percent
    """
    is_allotted: bool
    selling_price: Optional[Decimal] = None
    commission_rate_pct: Decimal = ZERO


@dataclass(frozen=True)
class SettlementResult:
    """
    Settled outcome of one pool for one IPO.

    ``participant_ids`` is the pool membership at the moment the result was
    recorded. Later roster edits do not change it: a recorded settlement is
    a historical record.

    Attributes:
        is_allotted: Whether the pool received an allotment
        selling_price: Per-share selling price, None when not allotted
        commission_deducted: Commission taken from gross profit
        final_amount: Amount returned to the pool
        participant_ids: Pool members at recording time
        result_id: Unique identifier for this result
        demat_account_id: Account whose pool was settled
    """
    is_allotted: bool
    selling_price: Optional[Decimal]
    commission_deducted: Decimal
    final_amount: Decimal
    participant_ids: tuple[str, ...] = ()
    result_id: str = field(default_factory=_new_id)
    demat_account_id: Optional[str] = None


@dataclass(frozen=True)
class Contribution:
    """One participant's stake in a pool."""
    participant_id: str
    investment_amount: Decimal


@dataclass(frozen=True)
class ParticipantDistribution:
    """
    A participant's share of a settled pool.

    Attributes:
        participant_id: Participant identifier
        share_fraction: investment_amount / pool total, in (0, 1]
        individual_return: Share of the pool's final amount
        individual_profit: individual_return - investment_amount
    """
    participant_id: str
    share_fraction: Decimal
    individual_return: Decimal
    individual_profit: Decimal


@dataclass(frozen=True)
class DematAccount:
    """
    Brokerage (demat) account that applies on behalf of a pool.

    Attributes:
        account_id: Unique identifier
        account_name: Display name of the account
        owner_name: Name of the account holder
        commission_rate: Percent of gross profit kept by the owner
    """
    account_id: str
    account_name: str
    owner_name: str
    commission_rate: Decimal = ZERO

    @classmethod
    def create(
        cls,
        account_name: str,
        owner_name: str,
        commission_rate: Decimal,
    ) -> "DematAccount":
        """Factory method to create an account with auto-generated ID."""
        return cls(
            account_id=_new_id(),
            account_name=account_name,
            owner_name=owner_name,
            commission_rate=commission_rate,
        )


@dataclass(frozen=True)
class Participant:
    """
    A person contributing money to a pool for one IPO.

    Attributes:
        participant_id: Unique identifier
        name: Participant name
        investment_amount: Money contributed
        demat_account_id: Account whose pool the money joins
    """
    participant_id: str
    name: str
    investment_amount: Decimal
    demat_account_id: str

    @classmethod
    def create(
        cls,
        name: str,
        investment_amount: Decimal,
        demat_account_id: str,
    ) -> "Participant":
        """Factory method to create a participant with auto-generated ID."""
        return cls(
            participant_id=_new_id(),
            name=name,
            investment_amount=investment_amount,
            demat_account_id=demat_account_id,
        )

    def as_contribution(self) -> Contribution:
        return Contribution(self.participant_id, self.investment_amount)


@dataclass(frozen=True)
class IPODetails:
    """Name and lot terms of an IPO."""
    name: str = ""
    lot_terms: IPOLotTerms = field(default_factory=IPOLotTerms)


@dataclass(frozen=True)
class IPORecord:
    """
    One IPO with its own participants and recorded results.

    Attributes:
        ipo_id: Unique identifier
        details: Name and lot terms
        participants: Participants applying in this IPO
        results: Settlement results recorded so far, one per account
    """
    ipo_id: str
    details: IPODetails = field(default_factory=IPODetails)
    participants: tuple[Participant, ...] = ()
    results: tuple[SettlementResult, ...] = ()

    @classmethod
    def create(cls, name: str, lot_terms: Optional[IPOLotTerms] = None) -> "IPORecord":
        """Factory method to create an IPO with auto-generated ID."""
        return cls(
            ipo_id=_new_id(),
            details=IPODetails(name=name, lot_terms=lot_terms or IPOLotTerms()),
        )

    def with_participants(self, participants: list[Participant]) -> "IPORecord":
        return replace(self, participants=tuple(participants))

    def with_results(self, results: list[SettlementResult]) -> "IPORecord":
        return replace(self, results=tuple(results))

    def with_details(self, details: IPODetails) -> "IPORecord":
        return replace(self, details=details)

    @property
    def total_investment(self) -> Decimal:
        """Sum of all participant contributions in this IPO."""
        return sum((p.investment_amount for p in self.participants), ZERO)


@dataclass(frozen=True)
class Workbook:
    """
    Complete application state.

    Demat accounts are shared across IPOs; every IPO keeps its own
    participants and results.
    """
    demat_accounts: tuple[DematAccount, ...] = ()
    ipos: tuple[IPORecord, ...] = ()

    def with_accounts(self, accounts: list[DematAccount]) -> "Workbook":
        return replace(self, demat_accounts=tuple(accounts))

    def with_ipos(self, ipos: list[IPORecord]) -> "Workbook":
        return replace(self, ipos=tuple(ipos))


@dataclass
class DecisionLogEntry:
    """
    Entry for the append-only decision log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        ipo_id: IPO involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    ipo_id: Optional[str]
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        ipo_id: Optional[str],
        details: dict,
    ) -> "DecisionLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            ipo_id=ipo_id,
            details=details,
        )


@dataclass(frozen=True)
class ParticipantReportRow:
    """
    One line of the individual participant returns report.

    Attributes:
        participant_id: Participant identifier
        participant_name: Participant name
        investment_amount: Money contributed
        account_name: Demat account of the pool
        owner_name: Holder of that account
        is_allotted: Whether the pool was allotted
        individual_return: Share of the pool's final amount
        individual_profit: individual_return - investment_amount
        return_pct: individual_profit as a percentage of the investment
    """
    participant_id: str
    participant_name: str
    investment_amount: Decimal
    account_name: str
    owner_name: str
    is_allotted: bool
    individual_return: Decimal
    individual_profit: Decimal
    return_pct: Decimal

    @property
    def status(self) -> str:
        return "Allotted" if self.is_allotted else "Not Allotted"


@dataclass(frozen=True)
class AccountSummaryRow:
    """
    One line of the per-account settlement summary.

    Attributes:
        account_id: Demat account identifier
        account_name: Display name of the account
        owner_name: Holder of the account
        participant_names: Names of the snapshot members
        total_investment: Contribution of the snapshot members
        is_allotted: Whether the pool was allotted
        selling_price: Per-share selling price, None when not allotted
        final_amount: Amount returned to the pool
        commission_deducted: Commission kept by the owner
        net_profit: final_amount - total_investment
    """
    account_id: str
    account_name: str
    owner_name: str
    participant_names: tuple[str, ...]
    total_investment: Decimal
    is_allotted: bool
    selling_price: Optional[Decimal]
    final_amount: Decimal
    commission_deducted: Decimal
    net_profit: Decimal

    @property
    def status(self) -> str:
        return "Allotted" if self.is_allotted else "Not Allotted"


@dataclass
class AppSettings:
    """
    Application settings.

    Attributes:
        data_dir: Directory holding the workbook, log and exports
        workbook_file: Workbook file name inside data_dir
        decision_log_file: Decision log file name inside data_dir
        default_commission_rate: Commission rate offered for new accounts
    """
    data_dir: str = "data"
    workbook_file: str = "workbook.json"
    decision_log_file: str = "decision_log.jsonl"
    default_commission_rate: Decimal = ZERO

    @property
    def workbook_path(self) -> Path:
        return Path(self.data_dir) / self.workbook_file

    @property
    def decision_log_path(self) -> Path:
        return Path(self.data_dir) / self.decision_log_file
