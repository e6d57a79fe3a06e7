"""
Tests for CSV import/export and workbook persistence.
"""

import json
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from ipo_pool.analytics import account_summary, participant_breakdown
from ipo_pool.data import (
    PARTICIPANT_REPORT_SCHEMA,
    DataLoadError,
    WorkbookStore,
    load_demat_accounts,
    load_participants,
    participant_report_frame,
    save_account_summary,
    save_participant_report,
)
from ipo_pool.models import DematAccount, IPORecord, Workbook
from ipo_pool.pools import record_result, replace_ipo


def _write(path: Path, text: str) -> Path:
    path.write_text(text)
    return path


class TestLoadDematAccounts:
    """Tests for the load_demat_accounts function."""

    def test_load_accounts(self, tmp_path: Path):
        csv = _write(
            tmp_path / "accounts.csv",
            "account_name,owner_name,commission_rate\n"
            "Zerodha,Ravi,5\n"
            "Groww,Meena,2.5\n",
        )

        accounts = load_demat_accounts(csv)

        assert [a.account_name for a in accounts] == ["Zerodha", "Groww"]
        assert accounts[1].commission_rate == Decimal("2.5")
        assert accounts[0].account_id != accounts[1].account_id

    def test_missing_column(self, tmp_path: Path):
        csv = _write(tmp_path / "accounts.csv", "account_name,owner_name\nZerodha,Ravi\n")

        with pytest.raises(DataLoadError, match="commission_rate"):
            load_demat_accounts(csv)

    def test_bad_rate(self, tmp_path: Path):
        csv = _write(
            tmp_path / "accounts.csv",
            "account_name,owner_name,commission_rate\nZerodha,Ravi,five\n",
        )

        with pytest.raises(DataLoadError, match="Row 1"):
            load_demat_accounts(csv)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(DataLoadError, match="not found"):
            load_demat_accounts(tmp_path / "nope.csv")


class TestLoadParticipants:
    """Tests for the load_participants function."""

    def test_resolves_account_by_name_or_id(self, tmp_path: Path, account: DematAccount,
                                            second_account: DematAccount):
        csv = _write(
            tmp_path / "participants.csv",
            "name,investment_amount,demat_account\n"
            "Asha,50000,zerodha\n"
            "Dev,30000,ACC2\n",
        )

        participants = load_participants(csv, [account, second_account])

        assert [p.demat_account_id for p in participants] == ["ACC1", "ACC2"]
        assert participants[0].investment_amount == Decimal("50000")

    def test_unknown_account(self, tmp_path: Path, account: DematAccount):
        csv = _write(
            tmp_path / "participants.csv",
            "name,investment_amount,demat_account\nAsha,50000,Upstox\n",
        )

        with pytest.raises(DataLoadError, match="Upstox"):
            load_participants(csv, [account])


class TestReportExport:
    """Tests for saving the final report CSVs."""

    def test_participant_report(self, tmp_path: Path, ipo: IPORecord, account: DematAccount):
        settled, _ = record_result(ipo, account, True, Decimal("1600"))
        rows = participant_breakdown(settled, [account])

        path = save_participant_report(rows, tmp_path / "out" / "report.csv")
        df = pd.read_csv(path, dtype=str)

        assert list(df.columns) == PARTICIPANT_REPORT_SCHEMA.all_columns
        assert df["Individual Return"].tolist() == ["56333.34", "56333.33", "56333.33"]
        assert df["Profit/Loss"].tolist()[0] == "6333.34"
        assert df["Status"].unique().tolist() == ["Allotted"]

    def test_account_summary(self, tmp_path: Path, ipo: IPORecord, account: DematAccount):
        settled, _ = record_result(ipo, account, False)
        path = save_account_summary(account_summary(settled, [account]), tmp_path / "summary.csv")
        df = pd.read_csv(path, dtype=str, keep_default_na=False)

        assert df["Status"].tolist() == ["Not Allotted"]
        assert df["Sale Price"].tolist() == [""]
        assert df["Net Profit/Loss"].tolist() == ["0.00"]

    def test_report_frame(self, ipo: IPORecord, account: DematAccount):
        settled, _ = record_result(ipo, account, True, Decimal("1600"))
        df = participant_report_frame(participant_breakdown(settled, [account]))

        assert len(df) == 3
        assert df["Individual Return"].sum() == pytest.approx(169000.00)


class TestWorkbookStore:
    """Tests for JSON workbook persistence."""

    def test_missing_file_is_empty(self, tmp_path: Path):
        store = WorkbookStore(tmp_path / "workbook.json")

        assert not store.exists()
        assert store.load() == Workbook()

    def test_save_and_load(self, tmp_path: Path, workbook: Workbook, account: DematAccount):
        """Test that a workbook with a recorded result survives a save."""
        settled, result = record_result(workbook.ipos[0], account, True, Decimal("1600"))
        workbook = replace_ipo(workbook, settled)
        store = WorkbookStore(tmp_path / "nested" / "workbook.json")

        store.save(workbook)
        loaded = store.load()

        assert loaded == workbook
        assert loaded.ipos[0].results[0].participant_ids == ("P1", "P2", "P3")
        assert loaded.ipos[0].results[0].final_amount == Decimal("169000.00")
        assert loaded.ipos[0].details.lot_terms.issue_price == Decimal("1400")

    def test_amounts_stored_as_strings(self, tmp_path: Path, workbook: Workbook):
        store = WorkbookStore(tmp_path / "workbook.json")
        store.save(workbook)

        raw = json.loads((tmp_path / "workbook.json").read_text())

        assert raw["version"] == 1
        assert raw["ipos"][0]["participants"][0]["investment_amount"] == "50000"

    def test_invalid_json(self, tmp_path: Path):
        path = _write(tmp_path / "workbook.json", "{not json")

        with pytest.raises(DataLoadError):
            WorkbookStore(path).load()

    def test_unsupported_version(self, tmp_path: Path):
        path = _write(tmp_path / "workbook.json", json.dumps({"version": 99}))

        with pytest.raises(DataLoadError, match="version"):
            WorkbookStore(path).load()

    def test_missing_field(self, tmp_path: Path):
        path = _write(
            tmp_path / "workbook.json",
            json.dumps({"version": 1, "demat_accounts": [{"account_id": "A"}]}),
        )

        with pytest.raises(DataLoadError, match="missing field"):
            WorkbookStore(path).load()

    @pytest.mark.parametrize("raw", [
        {"version": 1, "ipos": [{"ipo_id": "X", "shares_per_lot": "ten"}]},
        {"version": 1, "ipos": ["not an object"]},
        {"version": 1, "demat_accounts": [["A", "Zerodha"]]},
        {"version": 1, "ipos": 5},
    ])
    def test_invalid_value(self, tmp_path: Path, raw: dict):
        """Test that wrongly typed entries are reported as load errors."""
        path = _write(tmp_path / "workbook.json", json.dumps(raw))

        with pytest.raises(DataLoadError, match="invalid value"):
            WorkbookStore(path).load()
