"""Core business logic services for the expense-splitting ledger."""

from .split_service import SplitPolicy
from .membership_service import MembershipGate
from .balance_service import BalanceAggregator
from .settlement_service import SettlementService
from .expense_service import ExpenseService
from .group_service import GroupService

__all__ = [
    "SplitPolicy",
    "MembershipGate",
    "BalanceAggregator",
    "SettlementService",
    "ExpenseService",
    "GroupService",
]
