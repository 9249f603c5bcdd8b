"""Reports package: pure aggregations and the service composing them."""

from moneytracker.reports.aggregation import (
    describe_expenses,
    describe_portfolio,
    expense_breakdown,
    month_key,
    monthly_summary,
    net_savings,
    net_worth,
    top_expenses,
    total_balance,
    total_stock_value,
)
from moneytracker.reports.service import ReportService

__all__ = [
    "ReportService",
    "describe_expenses",
    "describe_portfolio",
    "expense_breakdown",
    "month_key",
    "monthly_summary",
    "net_savings",
    "net_worth",
    "top_expenses",
    "total_balance",
    "total_stock_value",
]
