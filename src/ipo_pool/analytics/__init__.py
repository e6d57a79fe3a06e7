"""
Analytics module for the IPO Pool Tracker.

Provides the final report for an IPO and cross-IPO overviews.
"""

from ipo_pool.analytics.report import (
    summarize_ipo,
    participant_breakdown,
    account_summary,
)
from ipo_pool.analytics.overview import (
    ipo_status,
    ipo_overview,
    workbook_totals,
    consolidated_participants,
)

__all__ = [
    "summarize_ipo",
    "participant_breakdown",
    "account_summary",
    "ipo_status",
    "ipo_overview",
    "workbook_totals",
    "consolidated_participants",
]
