"""
Group Expense Settlement

This module provides:
- Net position computation from recorded expenses
- Greedy debtor/creditor matching into suggested transfers
- Equal, custom and percentage expense splits
- An in-memory group service for groups, participants and expenses
"""

from .models import (
    SplitMode,
    ExpenseSplit,
    Expense,
    Settlement,
    NetPosition,
)
from .engine import compute_balances, compute_net_positions, summarize_positions
from .splits import SplitError, compute_splits
from .service import SettlementService

__all__ = [
    "SplitMode",
    "ExpenseSplit",
    "Expense",
    "Settlement",
    "NetPosition",
    "compute_balances",
    "compute_net_positions",
    "summarize_positions",
    "SplitError",
    "compute_splits",
    "SettlementService",
]
