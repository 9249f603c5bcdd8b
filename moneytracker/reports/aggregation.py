"""
Report Aggregations

Pure reductions over a user's records. Every function is total:
empty input gives zero or an empty result, never an error.
"""

from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Iterable, Optional

from moneytracker.models.finance import (
    Account,
    MonthlySummary,
    StockPosition,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")


def month_key(timestamp: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    YYYY-MM of the timestamp's local date.

    Aware timestamps are converted to `tz` (the system zone when None);
    naive timestamps are already local.
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(tz)
    return f"{timestamp.year:04d}-{timestamp.month:02d}"


def expense_breakdown(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Total expense per category, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for tx in transactions:
        if tx.type != TransactionType.EXPENSE:
            continue
        totals[tx.category] = totals.get(tx.category, ZERO) + tx.amount
    return totals


def monthly_summary(
    transactions: Iterable[Transaction],
    tz: Optional[tzinfo] = None,
) -> list[MonthlySummary]:
    """Income and expense per month, ascending by month key."""
    months: dict[str, MonthlySummary] = {}
    for tx in transactions:
        key = month_key(tx.date, tz)
        summary = months.setdefault(key, MonthlySummary(month=key))
        if tx.type == TransactionType.INCOME:
            summary.income += tx.amount
        elif tx.type == TransactionType.EXPENSE:
            summary.expense += tx.amount
    return [months[key] for key in sorted(months)]


def net_savings(summary: MonthlySummary) -> Decimal:
    return summary.income - summary.expense


def total_balance(accounts: Iterable[Account]) -> Decimal:
    return sum((a.balance for a in accounts), ZERO)


def total_stock_value(positions: Iterable[StockPosition]) -> Decimal:
    return sum((p.shares * p.current_price for p in positions), ZERO)


def net_worth(
    accounts: Iterable[Account],
    positions: Iterable[StockPosition],
) -> Decimal:
    """Sum of account balances plus position market values."""
    return total_balance(accounts) + total_stock_value(positions)


def top_expenses(
    transactions: Iterable[Transaction],
    limit: int = 5,
) -> list[Transaction]:
    """The first `limit` expenses in the given order."""
    expenses = [tx for tx in transactions if tx.type == TransactionType.EXPENSE]
    return expenses[:limit]


def describe_expenses(expenses: Iterable[Transaction]) -> str:
    return ", ".join(f"{tx.category}: ${tx.amount}" for tx in expenses)


def describe_portfolio(positions: Iterable[StockPosition]) -> str:
    return ", ".join(f"{p.symbol} ({p.shares} shares)" for p in positions)
