"""Portfolio package: valuation math and position management."""

from moneytracker.portfolio.service import (
    InvalidPositionError,
    PortfolioError,
    PortfolioService,
    PositionNotFoundError,
)
from moneytracker.portfolio.valuation import (
    apply_quote,
    cost_basis,
    market_value,
    portfolio_totals,
    profit_percent,
    valuate,
)

__all__ = [
    "InvalidPositionError",
    "PortfolioError",
    "PortfolioService",
    "PositionNotFoundError",
    "apply_quote",
    "cost_basis",
    "market_value",
    "portfolio_totals",
    "profit_percent",
    "valuate",
]
