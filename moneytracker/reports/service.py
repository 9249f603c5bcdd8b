"""
Report Service

Loads a user's records and runs the aggregations over them.

DESIGN DECISION: All numbers are computed HERE, deterministically.
The advisor agent only receives the finished figures to phrase a
summary; it never sees the store.
"""

from datetime import tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from moneytracker.agents import ADVICE_UNAVAILABLE, AdvisorAgent
from moneytracker.ledger import LedgerService
from moneytracker.models.finance import (
    DashboardSummary,
    MonthlySummary,
    PositionValuation,
    StockPosition,
)
from moneytracker.portfolio import PortfolioService, valuate
from moneytracker.reports.aggregation import (
    describe_expenses,
    describe_portfolio,
    expense_breakdown,
    monthly_summary,
    net_worth,
    top_expenses,
    total_balance,
    total_stock_value,
)


class ReportService:
    """Dashboard, monthly report and AI summary for one user at a time."""

    def __init__(
        self,
        ledger: LedgerService,
        portfolio: PortfolioService,
        advisor: Optional[AdvisorAgent] = None,
        timezone: Optional[str] = None,
        top_expense_count: int = 5,
    ):
        self._ledger = ledger
        self._portfolio = portfolio
        self._advisor = advisor
        self._tz: Optional[tzinfo] = ZoneInfo(timezone) if timezone else None
        self._top_expense_count = top_expense_count

    async def dashboard(self, user_id: str) -> DashboardSummary:
        accounts = await self._ledger.list_accounts(user_id)
        positions = await self._portfolio.list_positions(user_id)
        transactions = await self._ledger.list_transactions(user_id)

        return DashboardSummary(
            total_balance=total_balance(accounts),
            total_stock_value=total_stock_value(positions),
            net_worth=net_worth(accounts, positions),
            expense_breakdown=expense_breakdown(transactions),
        )

    async def monthly_report(self, user_id: str) -> list[MonthlySummary]:
        transactions = await self._ledger.list_transactions(user_id)
        return monthly_summary(transactions, tz=self._tz)

    async def position_report(
        self,
        user_id: str,
    ) -> list[tuple[StockPosition, PositionValuation]]:
        positions = await self._portfolio.list_positions(user_id)
        return [(p, valuate(p)) for p in positions]

    async def financial_advice(self, user_id: str) -> str:
        """
        Ask the advisor for a short summary of the user's finances.

        Uses the most recent expenses and the current holdings.
        """
        if self._advisor is None:
            return ADVICE_UNAVAILABLE

        accounts = await self._ledger.list_accounts(user_id)
        positions = await self._portfolio.list_positions(user_id)
        transactions = await self._ledger.list_transactions(user_id)

        return await self._advisor.generate_advice(
            total_balance=total_balance(accounts),
            expense_summary=describe_expenses(
                top_expenses(transactions, limit=self._top_expense_count)
            ),
            portfolio_summary=describe_portfolio(positions),
        )
