"""
Portfolio Service

Stores stock positions and keeps their prices current through the
quote agent.

BOUNDARIES:
- A failed quote lookup is a SOFT failure: the position keeps its last
  known price and the caller is told which symbol was not updated
- Batch refresh is sequential, one position at a time; one failure
  never stops the rest
"""

from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from moneytracker.agents import QuoteAgent
from moneytracker.audit import AuditLogger, create_correlation_id
from moneytracker.ledger.rules import LedgerError, validate_balance
from moneytracker.models.audit import AuditEventType
from moneytracker.models.finance import (
    BatchRefreshResult,
    RefreshResult,
    StockPosition,
    utc_now,
)
from moneytracker.portfolio.valuation import apply_quote
from moneytracker.services.storage import STOCKS, DocumentStore


logger = structlog.get_logger(__name__)


class PortfolioError(Exception):
    """Base exception for portfolio operations."""
    pass


class InvalidPositionError(PortfolioError):
    """Position input failed validation."""
    pass


class PositionNotFoundError(PortfolioError):
    """Referenced position does not exist or is not the user's."""
    pass


def _non_negative(value: Any, label: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidPositionError(f"{label} is required")
    try:
        number = validate_balance(value)
    except LedgerError as e:
        raise InvalidPositionError(f"{label}: {e}") from e
    if number < 0:
        raise InvalidPositionError(f"{label} cannot be negative")
    return number


class PortfolioService:
    """Stock positions of every user in one store."""

    def __init__(
        self,
        store: DocumentStore,
        quote_agent: QuoteAgent,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable = utc_now,
    ):
        self._store = store
        self._quote_agent = quote_agent
        self._audit_logger = audit_logger
        self._clock = clock

    async def list_positions(self, user_id: str) -> list[StockPosition]:
        docs = await self._store.list_by_owner(STOCKS, user_id)
        return sorted(
            (StockPosition.model_validate(doc) for doc in docs),
            key=lambda p: p.symbol,
        )

    async def get_position(self, user_id: str, position_id: str) -> StockPosition:
        doc = await self._store.get(STOCKS, position_id)
        if doc is None or doc.get("user_id") != user_id:
            raise PositionNotFoundError(f"Position not found: {position_id}")
        return StockPosition.model_validate(doc)

    async def add_position(
        self,
        user_id: str,
        symbol: str,
        shares: Any,
        avg_cost: Any,
    ) -> StockPosition:
        """
        Add a position, seeding its name and price from a quote.

        Without a quote the name falls back to the symbol and the
        price to the average cost.
        """
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise InvalidPositionError("Symbol is required")
        shares = _non_negative(shares, "Shares")
        avg_cost = _non_negative(avg_cost, "Average cost")

        quote = await self._quote_agent.fetch_quote(symbol)
        if quote is None:
            logger.info("position_seeded_without_quote", symbol=symbol)

        try:
            position = StockPosition(
                user_id=user_id,
                symbol=symbol,
                name=(quote.name if quote and quote.name else symbol),
                shares=shares,
                avg_cost=avg_cost,
                current_price=(quote.price if quote else avg_cost),
                last_updated=self._clock(),
            )
        except ValidationError as e:
            raise InvalidPositionError(f"Invalid position: {e}") from e

        await self._store.upsert(
            STOCKS, position.id, position.model_dump(mode="json", exclude={"id"})
        )

        if self._audit_logger:
            await self._audit_logger.log_position_changed(
                AuditEventType.POSITION_ADDED,
                user_id=user_id,
                position_id=position.id,
                symbol=symbol,
                details={
                    "shares": str(shares),
                    "avg_cost": str(avg_cost),
                    "seeded_from_quote": quote is not None,
                },
            )
        return position

    async def delete_position(self, user_id: str, position_id: str) -> None:
        position = await self.get_position(user_id, position_id)
        await self._store.delete(STOCKS, position_id)

        if self._audit_logger:
            await self._audit_logger.log_position_changed(
                AuditEventType.POSITION_DELETED,
                user_id=user_id,
                position_id=position_id,
                symbol=position.symbol,
            )

    async def refresh_price(
        self,
        position: StockPosition,
        correlation_id: Optional[UUID] = None,
    ) -> RefreshResult:
        """
        Fetch a fresh quote for one position and save it.

        On lookup failure the stored position is left untouched and
        the result says so.
        """
        quote = await self._quote_agent.fetch_quote(position.symbol)

        updated = None
        if quote is not None:
            try:
                updated = apply_quote(position, quote, now=self._clock())
            except ValidationError as e:
                logger.warning(
                    "quote_rejected",
                    symbol=position.symbol,
                    error=str(e),
                )

        if updated is None:
            if self._audit_logger:
                await self._audit_logger.log_price_refresh_failed(
                    user_id=position.user_id,
                    position_id=position.id,
                    symbol=position.symbol,
                    correlation_id=correlation_id,
                )
            return RefreshResult(
                position_id=position.id,
                symbol=position.symbol,
                success=False,
                message=f"Could not fetch data for {position.symbol}",
                position=position,
            )

        fields = updated.model_dump(
            mode="json", include={"current_price", "last_updated", "name"}
        )
        await self._store.upsert(STOCKS, position.id, fields)

        if self._audit_logger:
            await self._audit_logger.log_price_refreshed(
                user_id=position.user_id,
                position_id=position.id,
                symbol=position.symbol,
                old_price=str(position.current_price),
                new_price=str(updated.current_price),
                correlation_id=correlation_id,
            )
        return RefreshResult(
            position_id=position.id,
            symbol=position.symbol,
            success=True,
            message=f"{position.symbol} updated to {updated.current_price}",
            position=updated,
        )

    async def refresh_all(self, user_id: str) -> BatchRefreshResult:
        """Refresh every position of a user, one after another."""
        correlation_id = create_correlation_id()
        batch = BatchRefreshResult()

        for position in await self.list_positions(user_id):
            try:
                result = await self.refresh_price(position, correlation_id=correlation_id)
            except Exception as e:
                logger.warning(
                    "price_refresh_save_failed",
                    symbol=position.symbol,
                    error=str(e),
                )
                result = RefreshResult(
                    position_id=position.id,
                    symbol=position.symbol,
                    success=False,
                    message=f"Could not update {position.symbol}: {e}",
                    position=position,
                )
            batch.results.append(result)

        logger.info(
            "price_refresh_batch_finished",
            user_id=user_id,
            updated=len(batch.updated),
            failed=len(batch.failed),
        )
        return batch
