"""
Append-only decision logging for the IPO Pool Tracker.

Every change to the rosters and every recorded result is logged with a
timestamp, so the history of a pool's settlement can be reconstructed.
"""

import json
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from ipo_pool.models import (
    ActionType,
    DecisionLogEntry,
    DematAccount,
    IPODetails,
    IPORecord,
    Participant,
    SettlementResult,
)


class DecisionLogger:
    """
    Append-only decision logger.

    Writes all decisions to a JSONL file for audit purposes.
    Each line is a complete JSON object representing one action.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the decision logger.

        Args:
            log_path: Path to the log file (will be created if not exists)
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: DecisionLogEntry) -> None:
        """
        Write a decision log entry.

        Args:
            entry: DecisionLogEntry to write
        """
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "ipo_id": entry.ipo_id,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=DecimalEncoder) + "\n")

    def _write(self, action_type: ActionType, ipo_id: Optional[str], details: dict) -> None:
        self.log(DecisionLogEntry.create(action_type=action_type, ipo_id=ipo_id, details=details))

    def log_ipo_created(self, ipo: IPORecord) -> None:
        self._write(ActionType.IPO_CREATED, ipo.ipo_id, _details_dict(ipo.details))

    def log_ipo_updated(self, ipo_id: str, details: IPODetails) -> None:
        self._write(ActionType.IPO_UPDATED, ipo_id, _details_dict(details))

    def log_ipo_deleted(self, ipo: IPORecord) -> None:
        self._write(
            ActionType.IPO_DELETED,
            ipo.ipo_id,
            {
                "name": ipo.details.name,
                "participants_dropped": len(ipo.participants),
                "results_dropped": len(ipo.results),
            },
        )

    def log_account_added(self, account: DematAccount) -> None:
        self._write(
            ActionType.ACCOUNT_ADDED,
            None,
            {
                "account_id": account.account_id,
                "account_name": account.account_name,
                "owner_name": account.owner_name,
                "commission_rate": account.commission_rate,
            },
        )

    def log_account_removed(self, account_id: str) -> None:
        self._write(ActionType.ACCOUNT_REMOVED, None, {"account_id": account_id})

    def log_participant_added(self, ipo_id: str, participant: Participant) -> None:
        self._write(
            ActionType.PARTICIPANT_ADDED,
            ipo_id,
            {
                "participant_id": participant.participant_id,
                "name": participant.name,
                "investment_amount": participant.investment_amount,
                "demat_account_id": participant.demat_account_id,
            },
        )

    def log_participant_removed(self, ipo_id: str, participant_id: str) -> None:
        self._write(ActionType.PARTICIPANT_REMOVED, ipo_id, {"participant_id": participant_id})

    def log_result_recorded(
        self,
        ipo_id: str,
        result: SettlementResult,
        total_contribution: Decimal,
    ) -> None:
        """
        Log a recorded (or re-recorded) settlement.

        Args:
            ipo_id: IPO identifier
            result: The settlement that was stored
            total_contribution: Pool total the settlement was computed from
        """
        details = {
            "result_id": result.result_id,
            "demat_account_id": result.demat_account_id,
            "is_allotted": result.is_allotted,
            "selling_price": result.selling_price,
            "total_contribution": total_contribution,
            "commission_deducted": result.commission_deducted,
            "final_amount": result.final_amount,
            "participant_ids": list(result.participant_ids),
        }
        self._write(ActionType.RESULT_RECORDED, ipo_id, details)

    def log_report_exported(self, ipo_id: str, output_path: str | Path, row_count: int) -> None:
        self._write(
            ActionType.REPORT_EXPORTED,
            ipo_id,
            {"output_path": str(output_path), "rows": row_count},
        )

    def log_config_loaded(self, details: IPODetails, config_path: str | Path) -> None:
        """
        Log configuration loading.

        Args:
            details: Loaded IPO definition
            config_path: Path to configuration file
        """
        payload = _details_dict(details)
        payload["config_path"] = str(config_path)
        self._write(ActionType.CONFIG_LOADED, None, payload)

    def read_log(self) -> list[DecisionLogEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of DecisionLogEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    DecisionLogEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        ipo_id=record.get("ipo_id"),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_ipo(self, ipo_id: str) -> list[DecisionLogEntry]:
        """Get log entries for a specific IPO."""
        return [e for e in self.read_log() if e.ipo_id == ipo_id]

    def filter_by_action_type(self, action_type: ActionType) -> list[DecisionLogEntry]:
        """Get log entries of a specific action type."""
        return [e for e in self.read_log() if e.action_type == action_type]


def _details_dict(details: IPODetails) -> dict:
    return {
        "name": details.name,
        "lot_price": details.lot_terms.lot_price,
        "shares_per_lot": details.lot_terms.shares_per_lot,
        "issue_price": details.lot_terms.issue_price,
    }


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


# Global logger instance (initialized on first use)
_global_logger: Optional[DecisionLogger] = None


def get_logger(log_path: Optional[str | Path] = None) -> DecisionLogger:
    """
    Get or create the global decision logger.

    Args:
        log_path: Optional path to initialize logger (required on first call)

    Returns:
        DecisionLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if log_path is None:
            log_path = "data/decision_log.jsonl"
        _global_logger = DecisionLogger(log_path)
    elif log_path is not None:
        # Allow reinitializing with new path
        _global_logger = DecisionLogger(log_path)

    return _global_logger


def log_action(
    action_type: ActionType,
    ipo_id: Optional[str],
    details: dict,
    log_path: Optional[str | Path] = None,
) -> None:
    """
    Convenience function to log an action.

    Args:
        action_type: Type of action
        ipo_id: IPO identifier (optional)
        details: Action details dictionary
        log_path: Optional path to log file
    """
    logger = get_logger(log_path)
    entry = DecisionLogEntry.create(
        action_type=action_type,
        ipo_id=ipo_id,
        details=details,
    )
    logger.log(entry)
