"""
Pytest fixtures for the IPO Pool Tracker tests.

Provides common test data and utilities used across test modules.
"""

from decimal import Decimal

import pytest

from ipo_pool.models import (
    AllotmentOutcome,
    Contribution,
    DematAccount,
    IPODetails,
    IPOLotTerms,
    IPORecord,
    Participant,
    Workbook,
)


@pytest.fixture
def lot_terms() -> IPOLotTerms:
    """₹14,000 per lot of 10 shares (issue price ₹1,400)."""
    return IPOLotTerms.create(lot_price=Decimal("14000"), shares_per_lot=10)


@pytest.fixture
def allotted_outcome() -> AllotmentOutcome:
    """Allotted, sold at ₹1,600 per share, 5% commission."""
    return AllotmentOutcome(
        is_allotted=True,
        selling_price=Decimal("1600"),
        commission_rate_pct=Decimal("5"),
    )


@pytest.fixture
def account() -> DematAccount:
    return DematAccount(
        account_id="ACC1",
        account_name="Zerodha",
        owner_name="Ravi",
        commission_rate=Decimal("5"),
    )


@pytest.fixture
def second_account() -> DematAccount:
    return DematAccount(
        account_id="ACC2",
        account_name="Groww",
        owner_name="Meena",
        commission_rate=Decimal("0"),
    )


@pytest.fixture
def participants() -> list[Participant]:
    """Three participants of ₹50,000 each in ACC1's pool."""
    return [
        Participant("P1", "Asha", Decimal("50000"), "ACC1"),
        Participant("P2", "Bharat", Decimal("50000"), "ACC1"),
        Participant("P3", "Chitra", Decimal("50000"), "ACC1"),
    ]


@pytest.fixture
def contributions(participants: list[Participant]) -> list[Contribution]:
    return [p.as_contribution() for p in participants]


@pytest.fixture
def ipo(lot_terms: IPOLotTerms, participants: list[Participant]) -> IPORecord:
    """An IPO with one funded pool and no results yet."""
    return IPORecord(
        ipo_id="IPO1",
        details=IPODetails(name="Example Tech", lot_terms=lot_terms),
        participants=tuple(participants),
    )


@pytest.fixture
def workbook(account: DematAccount, second_account: DematAccount, ipo: IPORecord) -> Workbook:
    return Workbook(demat_accounts=(account, second_account), ipos=(ipo,))


@pytest.fixture
def clean_env(monkeypatch):
    """Remove settings overrides from the environment."""
    monkeypatch.delenv("IPO_POOL_DATA_DIR", raising=False)
    monkeypatch.delenv("IPO_POOL_DEFAULT_COMMISSION", raising=False)
