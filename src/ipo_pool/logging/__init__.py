"""
Decision logging module for the IPO Pool Tracker.

Provides append-only decision logging for audit and reproducibility.
"""

from ipo_pool.logging.decision_log import (
    DecisionLogger,
    log_action,
    get_logger,
)

__all__ = [
    "DecisionLogger",
    "log_action",
    "get_logger",
]
