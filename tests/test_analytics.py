"""
Tests for the final report and cross-IPO views.
"""

from decimal import Decimal

from ipo_pool.analytics import (
    account_summary,
    consolidated_participants,
    ipo_overview,
    ipo_status,
    participant_breakdown,
    summarize_ipo,
    workbook_totals,
)
from ipo_pool.models import (
    DematAccount,
    IPODetails,
    IPOLotTerms,
    IPORecord,
    Participant,
    Workbook,
)
from ipo_pool.pools import record_result, remove_participant


class TestSummarizeIPO:
    """Tests for the summarize_ipo function."""

    def test_summary_before_results(self, ipo: IPORecord):
        """Test that an IPO without results has no returns."""
        summary = summarize_ipo(ipo)

        assert summary["total_investment"] == Decimal("150000")
        assert summary["total_returns"] == Decimal("0")
        assert summary["net_profit"] == Decimal("0")
        assert summary["total_lots_applied"] == 10

    def test_summary_after_allotment(self, ipo: IPORecord, account: DematAccount):
        """Test totals after one allotted pool."""
        settled, _ = record_result(ipo, account, True, Decimal("1600"))
        summary = summarize_ipo(settled)

        assert summary["total_returns"] == Decimal("169000.00")
        assert summary["total_commission"] == Decimal("1000.00")
        assert summary["net_profit"] == Decimal("19000.00")
        assert summary["allotted_count"] == 1
        assert summary["not_allotted_count"] == 0

    def test_net_profit_ignores_unsettled_pools(self, ipo: IPORecord, account: DematAccount,
                                                second_account: DematAccount):
        """Test that a pool with no result does not count as a loss."""
        pending = ipo.with_participants(
            [*ipo.participants, Participant("P4", "Dev", Decimal("30000"), "ACC2")]
        )
        settled, _ = record_result(pending, account, False)
        summary = summarize_ipo(settled)

        assert summary["total_investment"] == Decimal("180000")
        assert summary["settled_investment"] == Decimal("150000")
        assert summary["net_profit"] == Decimal("0")


class TestParticipantBreakdown:
    """Tests for the participant_breakdown function."""

    def test_rows_per_member(self, ipo: IPORecord, account: DematAccount):
        settled, _ = record_result(ipo, account, True, Decimal("1600"))
        rows = participant_breakdown(settled, [account])

        assert [r.participant_name for r in rows] == ["Asha", "Bharat", "Chitra"]
        assert sum(r.individual_return for r in rows) == Decimal("169000.00")
        assert rows[0].status == "Allotted"
        assert rows[0].account_name == "Zerodha"
        assert rows[0].return_pct == Decimal("6333.34") / Decimal("50000") * Decimal("100")

    def test_unknown_account_labelled(self, ipo: IPORecord, account: DematAccount):
        """Test that a result whose account was removed still reports."""
        settled, _ = record_result(ipo, account, False)
        rows = participant_breakdown(settled, [])

        assert all(r.account_name == "Unknown" for r in rows)
        assert rows[0].status == "Not Allotted"

    def test_result_with_no_remaining_members_skipped(self, ipo: IPORecord, account: DematAccount):
        settled, _ = record_result(ipo, account, False)
        emptied = settled.with_participants([])

        assert participant_breakdown(emptied, [account]) == []

    def test_removed_member_not_reported(self, ipo: IPORecord, account: DematAccount):
        settled, _ = record_result(ipo, account, True, Decimal("1600"))
        trimmed = settled.with_participants(remove_participant(list(settled.participants), "P1"))
        rows = participant_breakdown(trimmed, [account])

        assert [r.participant_id for r in rows] == ["P2", "P3"]
        assert sum(r.individual_return for r in rows) == Decimal("169000.00")


class TestAccountSummary:
    """Tests for the account_summary function."""

    def test_one_row_per_result(self, ipo: IPORecord, account: DematAccount):
        settled, _ = record_result(ipo, account, True, Decimal("1600"))
        rows = account_summary(settled, [account])

        assert len(rows) == 1
        assert rows[0].participant_names == ("Asha", "Bharat", "Chitra")
        assert rows[0].total_investment == Decimal("150000")
        assert rows[0].net_profit == Decimal("19000.00")
        assert rows[0].selling_price == Decimal("1600")


class TestOverview:
    """Tests for the IPO overview and consolidated participant view."""

    def test_status_lifecycle(self, ipo: IPORecord, account: DematAccount, lot_terms: IPOLotTerms):
        """Test each stage from setup to settlement."""
        assert ipo_status(IPORecord.create("")) == "Setup Required"
        assert ipo_status(IPORecord.create("New", IPOLotTerms())) == "Setup Required"
        assert ipo_status(IPORecord.create("New", lot_terms)) == "No Participants"
        assert ipo_status(ipo) == "Pending Results"

        settled, _ = record_result(ipo, account, False)
        assert ipo_status(settled) == "Active"

    def test_overview_rows(self, ipo: IPORecord):
        rows = ipo_overview([ipo])

        assert rows[0]["name"] == "Example Tech"
        assert rows[0]["participant_count"] == 3
        assert rows[0]["total_shares"] == Decimal("150000") / Decimal("1400")

    def test_workbook_totals(self, workbook: Workbook):
        totals = workbook_totals(workbook)

        assert totals["ipo_count"] == 1
        assert totals["account_count"] == 2
        assert totals["total_participants"] == 3
        assert totals["total_investment"] == Decimal("150000")

    def test_consolidated_matches_name_and_account(self, ipo: IPORecord, account: DematAccount,
                                                   lot_terms: IPOLotTerms):
        """Test that the same person in two IPOs is merged into one row."""
        settled, _ = record_result(ipo, account, True, Decimal("1600"))
        second = IPORecord(
            ipo_id="IPO2",
            details=IPODetails(name="Second", lot_terms=lot_terms),
            participants=(Participant("Q1", "Asha", Decimal("14000"), "ACC1"),),
        )

        people = consolidated_participants([settled, second], [account])
        asha = next(p for p in people if p.name == "Asha")

        assert len(people) == 3
        assert set(asha.entries) == {"IPO1", "IPO2"}
        assert asha.total_investment == Decimal("64000")
        assert asha.total_profit == Decimal("6333.34")
        assert asha.entries["IPO1"].status == "Allotted"
        assert asha.entries["IPO2"].status == "Pending"
