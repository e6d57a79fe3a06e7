"""
Pool management module for the IPO Pool Tracker.

Provides demat account and participant rosters, recording of allotment
results per pool, and workbook-level IPO management.
"""

from ipo_pool.pools.roster import (
    RosterError,
    add_demat_account,
    remove_demat_account,
    add_participant,
    remove_participant,
    find_account,
    participants_in_account,
    account_total,
    account_participant_count,
    contributors_for,
    shares_for_investment,
    ownership_percentage,
)
from ipo_pool.pools.results import (
    ResultError,
    record_result,
    result_for_account,
    unprocessed_accounts,
    distribute_result,
    snapshot_investment,
)
from ipo_pool.pools.workbook import (
    WorkbookError,
    add_ipo,
    get_ipo,
    find_ipo_by_name,
    replace_ipo,
    update_ipo_details,
    delete_ipo,
    add_account,
    remove_account,
)

__all__ = [
    "RosterError",
    "add_demat_account",
    "remove_demat_account",
    "add_participant",
    "remove_participant",
    "find_account",
    "participants_in_account",
    "account_total",
    "account_participant_count",
    "contributors_for",
    "shares_for_investment",
    "ownership_percentage",
    "ResultError",
    "record_result",
    "result_for_account",
    "unprocessed_accounts",
    "distribute_result",
    "snapshot_investment",
    "WorkbookError",
    "add_ipo",
    "get_ipo",
    "find_ipo_by_name",
    "replace_ipo",
    "update_ipo_details",
    "delete_ipo",
    "add_account",
    "remove_account",
]
