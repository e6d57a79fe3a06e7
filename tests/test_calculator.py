"""
Tests for allotment settlement of a single pool.
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from ipo_pool.models import AllotmentOutcome, IPOLotTerms
from ipo_pool.settlement import (
    InvalidInputError,
    settle,
    settlement_breakdown,
)


POOL_TOTAL = Decimal("150000")


class TestSettlementBreakdown:
    """Tests for the settlement_breakdown function."""

    def test_whole_lots_only(self, lot_terms: IPOLotTerms):
        """Test that only whole lots are bought and the rest is refunded."""
        breakdown = settlement_breakdown(
            POOL_TOTAL, lot_terms, Decimal("1600"), Decimal("5")
        )

        assert breakdown.lots_won == 10
        assert breakdown.used_investment == Decimal("140000")
        assert breakdown.unused_remainder == Decimal("10000")
        assert breakdown.shares_won == 100
        assert breakdown.sale_value == Decimal("160000.00")
        assert breakdown.gross_profit == Decimal("20000.00")
        assert breakdown.commission_deducted == Decimal("1000.00")
        assert breakdown.final_amount == Decimal("169000.00")

    def test_pool_smaller_than_one_lot(self, lot_terms: IPOLotTerms):
        """Test that a pool short of one lot wins nothing and is fully refunded."""
        breakdown = settlement_breakdown(
            Decimal("13999.99"), lot_terms, Decimal("1600"), Decimal("5")
        )

        assert breakdown.lots_won == 0
        assert breakdown.sale_value == Decimal("0.00")
        assert breakdown.commission_deducted == Decimal("0")
        assert breakdown.final_amount == Decimal("13999.99")

    def test_zero_lot_price_buys_nothing(self):
        """Test that a zero lot price yields zero lots instead of dividing by zero."""
        terms = IPOLotTerms.create(Decimal("0"), 10)
        breakdown = settlement_breakdown(POOL_TOTAL, terms, Decimal("1600"), Decimal("5"))

        assert breakdown.lots_won == 0
        assert breakdown.final_amount == Decimal("150000.00")

    def test_commission_rounded_half_up(self, lot_terms: IPOLotTerms):
        """Test commission is rounded half-up to cents."""
        # Sale 14005.50, gross profit 5.50, 5% of that is 0.275
        breakdown = settlement_breakdown(
            Decimal("15000"), lot_terms, Decimal("1400.55"), Decimal("5")
        )

        assert breakdown.sale_value == Decimal("14005.50")
        assert breakdown.gross_profit == Decimal("5.50")
        assert breakdown.commission_deducted == Decimal("0.28")
        assert breakdown.final_amount == Decimal("15005.22")

    def test_negative_shares_per_lot_rejected(self):
        """Test that negative shares per lot raises InvalidInputError."""
        terms = IPOLotTerms(lot_price=Decimal("14000"), shares_per_lot=-1)

        with pytest.raises(InvalidInputError):
            settlement_breakdown(POOL_TOTAL, terms, Decimal("1600"), Decimal("5"))


class TestSettle:
    """Tests for the settle function."""

    def test_allotted_with_profit(self, lot_terms: IPOLotTerms, allotted_outcome: AllotmentOutcome):
        """Test an allotted pool that sells at a profit."""
        result = settle(POOL_TOTAL, lot_terms, allotted_outcome)

        assert result.is_allotted is True
        assert result.selling_price == Decimal("1600")
        assert result.commission_deducted == Decimal("1000.00")
        assert result.final_amount == Decimal("169000.00")

    def test_not_allotted_full_refund(self, lot_terms: IPOLotTerms):
        """Test that a pool without allotment gets its money back untouched."""
        outcome = AllotmentOutcome(is_allotted=False, commission_rate_pct=Decimal("5"))
        result = settle(POOL_TOTAL, lot_terms, outcome)

        assert result.is_allotted is False
        assert result.selling_price is None
        assert result.commission_deducted == Decimal("0")
        assert result.final_amount == POOL_TOTAL

    def test_not_allotted_refund_rounded_to_cents(self, lot_terms: IPOLotTerms):
        """Test that a sub-cent pool total is refunded in whole cents."""
        result = settle(Decimal("100.005"), lot_terms, AllotmentOutcome(is_allotted=False))

        assert result.final_amount == Decimal("100.01")
        assert result.final_amount.as_tuple().exponent == -2

    def test_not_allotted_ignores_selling_price(self, lot_terms: IPOLotTerms):
        """Test that a selling price given for a non-allotted pool is dropped."""
        outcome = AllotmentOutcome(
            is_allotted=False,
            selling_price=Decimal("1600"),
            commission_rate_pct=Decimal("5"),
        )
        result = settle(POOL_TOTAL, lot_terms, outcome)

        assert result.selling_price is None
        assert result.final_amount == POOL_TOTAL

    def test_loss_bears_no_commission(self, lot_terms: IPOLotTerms):
        """Test that a loss is passed through with zero commission."""
        outcome = AllotmentOutcome(
            is_allotted=True,
            selling_price=Decimal("1300"),
            commission_rate_pct=Decimal("5"),
        )
        result = settle(POOL_TOTAL, lot_terms, outcome)

        assert result.commission_deducted == Decimal("0")
        assert result.final_amount == Decimal("140000.00")
        assert result.final_amount < POOL_TOTAL

    def test_break_even_bears_no_commission(self, lot_terms: IPOLotTerms):
        """Test that zero gross profit is not commission-bearing."""
        outcome = AllotmentOutcome(
            is_allotted=True,
            selling_price=Decimal("1400"),
            commission_rate_pct=Decimal("5"),
        )
        result = settle(POOL_TOTAL, lot_terms, outcome)

        assert result.commission_deducted == Decimal("0")
        assert result.final_amount == Decimal("150000.00")

    def test_zero_selling_price_keeps_remainder(self, lot_terms: IPOLotTerms):
        """Test that shares sold for nothing still return the refunded remainder."""
        outcome = AllotmentOutcome(
            is_allotted=True,
            selling_price=Decimal("0"),
            commission_rate_pct=Decimal("5"),
        )
        result = settle(POOL_TOTAL, lot_terms, outcome)

        assert result.final_amount == Decimal("10000.00")
        assert result.final_amount >= Decimal("0")

    def test_full_commission_returns_cost(self, lot_terms: IPOLotTerms):
        """Test that a 100% commission takes the whole profit and nothing more."""
        outcome = AllotmentOutcome(
            is_allotted=True,
            selling_price=Decimal("1600"),
            commission_rate_pct=Decimal("100"),
        )
        result = settle(POOL_TOTAL, lot_terms, outcome)

        assert result.commission_deducted == Decimal("20000.00")
        assert result.final_amount == Decimal("150000.00")

    def test_commission_is_on_profit_only(self, lot_terms: IPOLotTerms, allotted_outcome: AllotmentOutcome):
        """Test that the refunded remainder carries no commission."""
        small = settle(Decimal("140000"), lot_terms, allotted_outcome)
        large = settle(Decimal("150000"), lot_terms, allotted_outcome)

        assert small.commission_deducted == large.commission_deducted
        assert large.final_amount - small.final_amount == Decimal("10000.00")

    def test_snapshot_and_account_carried(self, lot_terms: IPOLotTerms, allotted_outcome: AllotmentOutcome):
        """Test that membership and account are recorded on the result."""
        result = settle(
            POOL_TOTAL, lot_terms, allotted_outcome,
            participant_ids=("P1", "P2"), demat_account_id="ACC1",
        )

        assert result.participant_ids == ("P1", "P2")
        assert result.demat_account_id == "ACC1"

    def test_recomputing_is_repeatable(self, lot_terms: IPOLotTerms, allotted_outcome: AllotmentOutcome):
        """Test that settling twice gives the same result apart from its id."""
        first = settle(POOL_TOTAL, lot_terms, allotted_outcome, participant_ids=("P1",))
        second = settle(POOL_TOTAL, lot_terms, allotted_outcome, participant_ids=("P1",))

        assert first.result_id != second.result_id
        assert replace(first, result_id="x") == replace(second, result_id="x")

    def test_allotted_requires_selling_price(self, lot_terms: IPOLotTerms):
        """Test that an allotted outcome without a selling price is rejected."""
        outcome = AllotmentOutcome(is_allotted=True, commission_rate_pct=Decimal("5"))

        with pytest.raises(InvalidInputError, match="selling_price"):
            settle(POOL_TOTAL, lot_terms, outcome)

    @pytest.mark.parametrize("field,outcome,total", [
        ("total_contribution", AllotmentOutcome(False), Decimal("-1")),
        ("selling_price", AllotmentOutcome(True, Decimal("-1"), Decimal("5")), POOL_TOTAL),
        ("commission_rate_pct", AllotmentOutcome(True, Decimal("1600"), Decimal("-5")), POOL_TOTAL),
    ])
    def test_negative_inputs_rejected(self, lot_terms, field, outcome, total):
        """Test that negative inputs raise InvalidInputError naming the field."""
        with pytest.raises(InvalidInputError, match=field):
            settle(total, lot_terms, outcome)

    def test_non_finite_amount_rejected(self, lot_terms: IPOLotTerms, allotted_outcome: AllotmentOutcome):
        """Test that NaN and infinity are rejected."""
        with pytest.raises(InvalidInputError):
            settle(Decimal("NaN"), lot_terms, allotted_outcome)
        with pytest.raises(InvalidInputError):
            settle(Decimal("Infinity"), lot_terms, allotted_outcome)

    def test_invalid_input_is_value_error(self, lot_terms: IPOLotTerms, allotted_outcome: AllotmentOutcome):
        """Test that callers can catch invalid input as ValueError."""
        with pytest.raises(ValueError):
            settle(Decimal("-100"), lot_terms, allotted_outcome)
