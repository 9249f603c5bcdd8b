"""
Data Models Package

This package contains all Pydantic models used in the Money Tracker system.
All data flowing through the system must conform to these schemas.
"""

from moneytracker.models.finance import (
    DEFAULT_CURRENCY,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    Account,
    AccountType,
    BatchRefreshResult,
    DashboardSummary,
    MonthlySummary,
    PositionValuation,
    Quote,
    ReconciliationTask,
    RefreshResult,
    StockPosition,
    Transaction,
    TransactionType,
    User,
    new_id,
)
from moneytracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "DEFAULT_CURRENCY",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "Account",
    "AccountType",
    "BatchRefreshResult",
    "DashboardSummary",
    "MonthlySummary",
    "PositionValuation",
    "Quote",
    "ReconciliationTask",
    "RefreshResult",
    "StockPosition",
    "Transaction",
    "TransactionType",
    "User",
    "new_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
