"""
Settlement module for the IPO Pool Tracker.

Provides the allotment settlement calculation for a pool and the
proportional distribution of its final amount among contributors.
"""

from ipo_pool.settlement.calculator import (
    AllotmentBreakdown,
    InvalidInputError,
    settle,
    settlement_breakdown,
)
from ipo_pool.settlement.distribution import (
    DegeneratePoolError,
    distribute,
    total_distributed,
)
from ipo_pool.settlement.money import round_money

__all__ = [
    "AllotmentBreakdown",
    "InvalidInputError",
    "settle",
    "settlement_breakdown",
    "DegeneratePoolError",
    "distribute",
    "total_distributed",
    "round_money",
]
