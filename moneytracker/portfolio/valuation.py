"""
Portfolio Valuation

    market_value   = shares * current_price
    cost_basis     = shares * avg_cost
    profit         = market_value - cost_basis
    profit_percent = profit / cost_basis * 100   (0 when cost_basis is 0)
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from moneytracker.models.finance import (
    PositionValuation,
    Quote,
    StockPosition,
    utc_now,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def market_value(position: StockPosition) -> Decimal:
    return position.shares * position.current_price


def cost_basis(position: StockPosition) -> Decimal:
    return position.shares * position.avg_cost


def profit_percent(profit: Decimal, basis: Decimal) -> Decimal:
    if basis == 0:
        return ZERO
    return profit / basis * HUNDRED


def valuate(position: StockPosition) -> PositionValuation:
    """Value one position at its last fetched price."""
    value = market_value(position)
    basis = cost_basis(position)
    profit = value - basis
    return PositionValuation(
        market_value=value,
        cost_basis=basis,
        profit=profit,
        profit_percent=profit_percent(profit, basis),
    )


def portfolio_totals(positions: Iterable[StockPosition]) -> PositionValuation:
    """Value a whole portfolio as if it were one position."""
    value = ZERO
    basis = ZERO
    for position in positions:
        value += market_value(position)
        basis += cost_basis(position)
    profit = value - basis
    return PositionValuation(
        market_value=value,
        cost_basis=basis,
        profit=profit,
        profit_percent=profit_percent(profit, basis),
    )


def apply_quote(
    position: StockPosition,
    quote: Quote,
    now: Optional[datetime] = None,
) -> StockPosition:
    """
    Return a copy of `position` priced at `quote`.

    The display name is replaced only when the quote carries a
    different, non-empty name. The result is validated, so a quote
    that would produce an unstorable position raises ValidationError.
    """
    update = {
        "current_price": quote.price,
        "last_updated": now or utc_now(),
    }
    if quote.name and quote.name != position.name:
        update["name"] = quote.name
    return StockPosition.model_validate({**position.model_dump(), **update})
