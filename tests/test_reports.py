"""Tests for report aggregations and ReportService."""

import asyncio
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from conftest import FakeAdvisor
from moneytracker.agents import ADVICE_UNAVAILABLE
from moneytracker.models.finance import (
    Account,
    StockPosition,
    Transaction,
    TransactionType,
)
from moneytracker.reports import (
    ReportService,
    describe_expenses,
    describe_portfolio,
    expense_breakdown,
    month_key,
    monthly_summary,
    net_worth,
    top_expenses,
    total_balance,
    total_stock_value,
)


def run(coro):
    return asyncio.run(coro)


def tx(amount, tx_type, category="Misc", date=None):
    return Transaction(
        user_id="u1",
        account_id="a1",
        amount=Decimal(amount),
        type=tx_type,
        category=category,
        date=date or datetime(2024, 1, 15, 12, 0),
    )


def holding(symbol, shares, price):
    return StockPosition(
        user_id="u1",
        symbol=symbol,
        name=symbol,
        shares=Decimal(shares),
        avg_cost=Decimal("1"),
        current_price=Decimal(price),
    )


class TestMonthKey:
    """Tests for month bucketing."""

    def test_naive_is_local(self):
        assert month_key(datetime(2024, 3, 31, 23, 59)) == "2024-03"

    def test_aware_converted_to_zone(self):
        late_utc = datetime(2024, 1, 31, 20, 0, tzinfo=timezone.utc)
        assert month_key(late_utc, ZoneInfo("Asia/Taipei")) == "2024-02"
        assert month_key(late_utc, timezone.utc) == "2024-01"


class TestAggregations:
    """Tests for the pure aggregation functions."""

    def test_monthly_summary(self):
        transactions = [
            tx("1000", TransactionType.INCOME, date=datetime(2024, 1, 5)),
            tx("200", TransactionType.EXPENSE, date=datetime(2024, 1, 20)),
            tx("50", TransactionType.EXPENSE, date=datetime(2024, 2, 3)),
        ]
        summary = monthly_summary(transactions)

        assert [s.month for s in summary] == ["2024-01", "2024-02"]
        assert (summary[0].income, summary[0].expense) == (Decimal("1000"), Decimal("200"))
        assert (summary[1].income, summary[1].expense) == (Decimal("0"), Decimal("50"))
        assert summary[0].net_savings == Decimal("800")

    def test_monthly_summary_sorted_regardless_of_input_order(self):
        transactions = [
            tx("5", TransactionType.EXPENSE, date=datetime(2024, 3, 1)),
            tx("5", TransactionType.EXPENSE, date=datetime(2023, 12, 1)),
            tx("5", TransactionType.EXPENSE, date=datetime(2024, 1, 1)),
        ]
        months = [s.month for s in monthly_summary(transactions)]
        assert months == ["2023-12", "2024-01", "2024-03"]

    def test_transfer_counts_nowhere(self):
        summary = monthly_summary([tx("99", TransactionType.TRANSFER)])
        assert summary[0].income == Decimal("0")
        assert summary[0].expense == Decimal("0")
        assert expense_breakdown([tx("99", TransactionType.TRANSFER)]) == {}

    def test_empty_inputs(self):
        assert monthly_summary([]) == []
        assert expense_breakdown([]) == {}
        assert net_worth([], []) == Decimal("0")

    def test_expense_breakdown(self):
        transactions = [
            tx("50", TransactionType.EXPENSE, "Food"),
            tx("20", TransactionType.EXPENSE, "Transport"),
            tx("30", TransactionType.EXPENSE, "Food"),
            tx("500", TransactionType.INCOME, "Salary"),
        ]
        assert expense_breakdown(transactions) == {
            "Food": Decimal("80"),
            "Transport": Decimal("20"),
        }

    def test_net_worth(self):
        accounts = [
            Account(user_id="u1", name="Bank", balance=Decimal("1000")),
            Account(user_id="u1", name="Cash", balance=Decimal("500")),
        ]
        positions = [holding("AAPL", "2", "100")]

        assert total_balance(accounts) == Decimal("1500")
        assert total_stock_value(positions) == Decimal("200")
        assert net_worth(accounts, positions) == Decimal("1700")

    def test_top_expenses_and_descriptions(self):
        transactions = [
            tx(str(n), TransactionType.EXPENSE, f"C{n}") for n in range(1, 8)
        ]
        top = top_expenses(transactions, limit=5)
        assert [t.category for t in top] == ["C1", "C2", "C3", "C4", "C5"]
        assert describe_expenses(top[:2]) == "C1: $1, C2: $2"
        assert describe_portfolio([holding("AAPL", "3", "1")]) == "AAPL (3 shares)"


class TestReportService:
    """Tests for ReportService against the in-memory store."""

    @pytest.fixture
    def seeded(self, ledger, portfolio):
        bank = run(ledger.create_account("u1", "Bank", opening_balance="1000"))
        run(ledger.create_account("u1", "Cash", opening_balance="500"))
        run(ledger.record_transaction(
            "u1", bank.id, "50", TransactionType.EXPENSE, "Food",
            date=datetime(2024, 1, 10, tzinfo=timezone.utc),
        ))
        run(ledger.record_transaction(
            "u1", bank.id, "20", TransactionType.EXPENSE, "Transport",
            date=datetime(2024, 1, 11, tzinfo=timezone.utc),
        ))
        run(ledger.record_transaction(
            "u1", bank.id, "70", TransactionType.INCOME, "Gift",
            date=datetime(2024, 2, 11, tzinfo=timezone.utc),
        ))
        run(portfolio.add_position("u1", "AAPL", "2", "100"))
        return bank

    def test_dashboard(self, ledger, portfolio, seeded):
        reports = ReportService(ledger, portfolio)
        dashboard = run(reports.dashboard("u1"))

        assert dashboard.total_balance == Decimal("1500")
        assert dashboard.total_stock_value == Decimal("200")
        assert dashboard.net_worth == Decimal("1700")
        assert dashboard.expense_breakdown == {
            "Transport": Decimal("20"),
            "Food": Decimal("50"),
        }

    def test_monthly_report(self, ledger, portfolio, seeded):
        reports = ReportService(ledger, portfolio, timezone="UTC")
        summary = run(reports.monthly_report("u1"))
        assert [(s.month, s.income, s.expense) for s in summary] == [
            ("2024-01", Decimal("0"), Decimal("70")),
            ("2024-02", Decimal("70"), Decimal("0")),
        ]

    def test_position_report(self, ledger, portfolio, seeded):
        reports = ReportService(ledger, portfolio)
        [(position, valuation)] = run(reports.position_report("u1"))
        assert position.symbol == "AAPL"
        assert valuation.profit == Decimal("0")

    def test_advice_without_advisor(self, ledger, portfolio, seeded):
        reports = ReportService(ledger, portfolio)
        assert run(reports.financial_advice("u1")) == ADVICE_UNAVAILABLE

    def test_advice_uses_computed_figures(self, ledger, portfolio, seeded):
        advisor = FakeAdvisor()
        reports = ReportService(ledger, portfolio, advisor=advisor, top_expense_count=1)

        assert run(reports.financial_advice("u1")) == "You are doing fine."
        [call] = advisor.calls
        assert call["total_balance"] == Decimal("1500")
        assert call["expense_summary"] == "Transport: $20"
        assert call["portfolio_summary"] == "AAPL (2 shares)"
