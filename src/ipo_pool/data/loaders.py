"""
Data loading and saving functions for CSV files.

Handles import of demat account and participant rosters, and export of the
individual returns report and the account summary.
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable

import pandas as pd

from ipo_pool.models import (
    AccountSummaryRow,
    DematAccount,
    Participant,
    ParticipantReportRow,
)
from ipo_pool.data.schemas import (
    ACCOUNT_SUMMARY_SCHEMA,
    DEMAT_ACCOUNTS_SCHEMA,
    PARTICIPANT_REPORT_SCHEMA,
    PARTICIPANTS_SCHEMA,
    FileSchema,
)


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


def load_demat_accounts(file_path: str | Path) -> list[DematAccount]:
    """
    Load demat accounts from a CSV file.

    Args:
        file_path: Path to CSV file with columns: account_name, owner_name,
                   commission_rate

    Returns:
        List of DematAccount objects with generated IDs

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, DEMAT_ACCOUNTS_SCHEMA)

    accounts = []
    for index, row in df.iterrows():
        accounts.append(
            DematAccount.create(
                account_name=str(row["account_name"]).strip(),
                owner_name=str(row["owner_name"]).strip(),
                commission_rate=_parse_amount(row["commission_rate"], "commission_rate", index),
            )
        )

    return accounts


def load_participants(
    file_path: str | Path,
    accounts: Iterable[DematAccount],
) -> list[Participant]:
    """
    Load participants from a CSV file.

    The ``demat_account`` column may hold an account ID or an account name.

    Args:
        file_path: Path to CSV file with columns: name, investment_amount,
                   demat_account
        accounts: Known demat accounts to resolve against

    Returns:
        List of Participant objects with generated IDs

    Raises:
        DataLoadError: If file cannot be loaded, is invalid, or refers to
            an unknown account
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, PARTICIPANTS_SCHEMA)

    accounts = list(accounts)
    by_id = {a.account_id: a for a in accounts}
    by_name = {a.account_name.lower(): a for a in accounts}

    participants = []
    for index, row in df.iterrows():
        ref = str(row["demat_account"]).strip()
        account = by_id.get(ref) or by_name.get(ref.lower())
        if account is None:
            raise DataLoadError(f"Row {index + 1}: unknown demat account '{ref}'")

        participants.append(
            Participant.create(
                name=str(row["name"]).strip(),
                investment_amount=_parse_amount(
                    row["investment_amount"], "investment_amount", index
                ),
                demat_account_id=account.account_id,
            )
        )

    return participants


def save_participant_report(
    rows: list[ParticipantReportRow],
    output_path: str | Path,
) -> Path:
    """
    Save the individual participant returns to a CSV file.

    Args:
        rows: Report rows
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    participant_report_table(rows).to_csv(output_path, index=False)

    return output_path


def participant_report_table(rows: list[ParticipantReportRow]) -> pd.DataFrame:
    """Participant report in export form, with money as two-decimal strings."""
    records = []
    for row in rows:
        records.append({
            "Participant Name": row.participant_name,
            "Investment Amount": str(row.investment_amount),
            "Demat Account": row.account_name,
            "Account Owner": row.owner_name,
            "Status": row.status,
            "Individual Return": f"{row.individual_return:.2f}",
            "Profit/Loss": f"{row.individual_profit:.2f}",
        })

    return pd.DataFrame(records, columns=PARTICIPANT_REPORT_SCHEMA.all_columns)


def save_account_summary(
    rows: list[AccountSummaryRow],
    output_path: str | Path,
) -> Path:
    """
    Save the per-account settlement summary to a CSV file.

    Args:
        rows: Summary rows
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for row in rows:
        records.append({
            "Account": row.account_name,
            "Owner": row.owner_name,
            "Participants": "; ".join(row.participant_names),
            "Total Investment": str(row.total_investment),
            "Status": row.status,
            "Sale Price": str(row.selling_price) if row.selling_price is not None else "",
            "Final Amount": f"{row.final_amount:.2f}",
            "Commission": f"{row.commission_deducted:.2f}",
            "Net Profit/Loss": f"{row.net_profit:.2f}",
        })

    df = pd.DataFrame(records, columns=ACCOUNT_SUMMARY_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def participant_report_frame(rows: list[ParticipantReportRow]) -> pd.DataFrame:
    """Participant report as a DataFrame of floats, for display and charts."""
    return pd.DataFrame(
        [
            {
                "Participant": row.participant_name,
                "Investment": float(row.investment_amount),
                "Demat Account": row.account_name,
                "Account Owner": row.owner_name,
                "Status": row.status,
                "Individual Return": float(row.individual_return),
                "Profit/Loss": float(row.individual_profit),
                "Return %": float(row.return_pct),
            }
            for row in rows
        ],
        columns=[
            "Participant", "Investment", "Demat Account", "Account Owner",
            "Status", "Individual Return", "Profit/Loss", "Return %",
        ],
    )


def _parse_amount(value, field_name: str, index: int) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise DataLoadError(f"Row {index + 1}: invalid {field_name} '{value}'")
    if not amount.is_finite():
        raise DataLoadError(f"Row {index + 1}: invalid {field_name} '{value}'")
    return amount


def _load_csv(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV file as strings and validate against schema.

    Args:
        file_path: Path to CSV file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    except Exception as e:
        raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    df.columns = [str(c).strip() for c in df.columns]

    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df
