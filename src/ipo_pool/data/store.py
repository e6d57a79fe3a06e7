"""
JSON persistence for the workbook.

Saves and loads the demat accounts, IPOs, participants and recorded results
verbatim, including each result's membership snapshot. Decimals are stored
as strings so amounts round-trip exactly.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from ipo_pool.models import (
    DematAccount,
    IPODetails,
    IPOLotTerms,
    IPORecord,
    Participant,
    SettlementResult,
    Workbook,
)
from ipo_pool.data.loaders import DataLoadError


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class WorkbookStore:
    """
    File-backed workbook storage.

    A missing file loads as an empty workbook. Saves write to a temporary
    file first and then replace the target.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Workbook:
        """
        Load the workbook.

        Raises:
            DataLoadError: If the file is not valid workbook JSON
        """
        if not self.path.exists():
            logger.debug("No workbook at %s, starting empty", self.path)
            return Workbook()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataLoadError(f"Failed to load workbook {self.path}: {e}")

        workbook = workbook_from_dict(raw)
        logger.debug(
            "Loaded workbook %s: %d accounts, %d IPOs",
            self.path, len(workbook.demat_accounts), len(workbook.ipos),
        )
        return workbook

    def save(self, workbook: Workbook) -> Path:
        """Write the workbook and return its path."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(workbook_to_dict(workbook), f, indent=2)
        tmp_path.replace(self.path)

        logger.debug("Saved workbook %s", self.path)
        return self.path


def workbook_to_dict(workbook: Workbook) -> dict[str, Any]:
    """Serialize a workbook into JSON-compatible primitives."""
    return {
        "version": FORMAT_VERSION,
        "demat_accounts": [
            {
                "account_id": a.account_id,
                "account_name": a.account_name,
                "owner_name": a.owner_name,
                "commission_rate": str(a.commission_rate),
            }
            for a in workbook.demat_accounts
        ],
        "ipos": [_ipo_to_dict(ipo) for ipo in workbook.ipos],
    }


def _ipo_to_dict(ipo: IPORecord) -> dict[str, Any]:
    terms = ipo.details.lot_terms
    return {
        "ipo_id": ipo.ipo_id,
        "name": ipo.details.name,
        "lot_price": str(terms.lot_price),
        "shares_per_lot": terms.shares_per_lot,
        "issue_price": str(terms.issue_price),
        "participants": [
            {
                "participant_id": p.participant_id,
                "name": p.name,
                "investment_amount": str(p.investment_amount),
                "demat_account_id": p.demat_account_id,
            }
            for p in ipo.participants
        ],
        "results": [
            {
                "result_id": r.result_id,
                "demat_account_id": r.demat_account_id,
                "is_allotted": r.is_allotted,
                "selling_price": str(r.selling_price) if r.selling_price is not None else None,
                "commission_deducted": str(r.commission_deducted),
                "final_amount": str(r.final_amount),
                "participant_ids": list(r.participant_ids),
            }
            for r in ipo.results
        ],
    }


def workbook_from_dict(raw: Any) -> Workbook:
    """
    Rebuild a workbook from its serialized form.

    The issue price is recomputed from the stored lot terms.

    Raises:
        DataLoadError: If required keys are missing or values are invalid
    """
    if not isinstance(raw, dict):
        raise DataLoadError("Workbook must be a JSON object")

    version = raw.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise DataLoadError(f"Unsupported workbook version: {version}")

    try:
        accounts = [
            DematAccount(
                account_id=a["account_id"],
                account_name=a["account_name"],
                owner_name=a["owner_name"],
                commission_rate=_decimal(a["commission_rate"]),
            )
            for a in raw.get("demat_accounts", [])
        ]
        ipos = [_ipo_from_dict(i) for i in raw.get("ipos", [])]
    except KeyError as e:
        raise DataLoadError(f"Workbook is missing field {e}")
    except (AttributeError, TypeError, ValueError) as e:
        raise DataLoadError(f"Workbook has an invalid value: {e}")

    return Workbook(demat_accounts=tuple(accounts), ipos=tuple(ipos))


def _ipo_from_dict(raw: dict[str, Any]) -> IPORecord:
    terms = IPOLotTerms.create(
        lot_price=_decimal(raw.get("lot_price", "0")),
        shares_per_lot=int(raw.get("shares_per_lot", 0)),
    )
    participants = tuple(
        Participant(
            participant_id=p["participant_id"],
            name=p["name"],
            investment_amount=_decimal(p["investment_amount"]),
            demat_account_id=p["demat_account_id"],
        )
        for p in raw.get("participants", [])
    )
    results = tuple(
        SettlementResult(
            result_id=r["result_id"],
            demat_account_id=r.get("demat_account_id"),
            is_allotted=bool(r["is_allotted"]),
            selling_price=_decimal(r["selling_price"]) if r.get("selling_price") is not None else None,
            commission_deducted=_decimal(r["commission_deducted"]),
            final_amount=_decimal(r["final_amount"]),
            participant_ids=tuple(r.get("participant_ids", [])),
        )
        for r in raw.get("results", [])
    )
    return IPORecord(
        ipo_id=raw["ipo_id"],
        details=IPODetails(name=raw.get("name", ""), lot_terms=terms),
        participants=participants,
        results=results,
    )


def _decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise DataLoadError(f"Invalid decimal value in workbook: {value!r}")
