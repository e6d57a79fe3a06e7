"""
Data module for the IPO Pool Tracker.

Provides CSV import of rosters, CSV export of reports, and JSON
persistence of the workbook.
"""

from ipo_pool.data.loaders import (
    DataLoadError,
    load_demat_accounts,
    load_participants,
    save_participant_report,
    save_account_summary,
    participant_report_frame,
    participant_report_table,
)
from ipo_pool.data.schemas import (
    DEMAT_ACCOUNTS_SCHEMA,
    PARTICIPANTS_SCHEMA,
    PARTICIPANT_REPORT_SCHEMA,
    ACCOUNT_SUMMARY_SCHEMA,
)
from ipo_pool.data.store import WorkbookStore

__all__ = [
    "DataLoadError",
    "load_demat_accounts",
    "load_participants",
    "save_participant_report",
    "save_account_summary",
    "participant_report_frame",
    "participant_report_table",
    "DEMAT_ACCOUNTS_SCHEMA",
    "PARTICIPANTS_SCHEMA",
    "PARTICIPANT_REPORT_SCHEMA",
    "ACCOUNT_SUMMARY_SCHEMA",
    "WorkbookStore",
]
