"""
Shared fixtures for the Money Tracker test suite.

No real API calls are made: the document store is in-memory and the
quote, advice and identity services are replaced by small fakes.
"""

from decimal import Decimal
from typing import Optional

import pytest

from moneytracker.audit import AuditLogger
from moneytracker.ledger import LedgerService
from moneytracker.models.finance import Quote, User
from moneytracker.portfolio import PortfolioService
from moneytracker.services.identity import IdentityProvider
from moneytracker.services.storage import InMemoryDocumentStore, StorageError


class FlakyStore(InMemoryDocumentStore):
    """In-memory store whose writes can be made to fail per collection."""

    def __init__(self):
        super().__init__()
        self.fail_upsert: set[str] = set()
        self.fail_delete: set[str] = set()

    async def upsert(self, collection, doc_id, fields):
        if collection in self.fail_upsert:
            raise StorageError(f"upsert to {collection} unavailable")
        await super().upsert(collection, doc_id, fields)

    async def delete(self, collection, doc_id):
        if collection in self.fail_delete:
            raise StorageError(f"delete from {collection} unavailable")
        return await super().delete(collection, doc_id)


class FakeQuoteAgent:
    """Returns canned quotes; symbols without one fail the lookup."""

    def __init__(self, quotes: Optional[dict[str, Quote]] = None):
        self.quotes = quotes or {}
        self.calls: list[str] = []

    async def fetch_quote(self, symbol: str) -> Optional[Quote]:
        self.calls.append(symbol)
        return self.quotes.get(symbol.upper())


class FakeAdvisor:
    """Records what it was asked and answers with a fixed sentence."""

    def __init__(self, answer: str = "You are doing fine."):
        self.answer = answer
        self.calls: list[dict] = []

    async def generate_advice(self, total_balance, expense_summary, portfolio_summary):
        self.calls.append({
            "total_balance": total_balance,
            "expense_summary": expense_summary,
            "portfolio_summary": portfolio_summary,
        })
        return self.answer


class FakeIdentityProvider(IdentityProvider):
    """Signs everyone in, unless given an error to raise."""

    def __init__(self, error=None):
        self.error = error
        self.logged_out = False

    async def register(self, email, password, display_name):
        if self.error:
            raise self.error
        return User(id="uid-1", email=email, display_name=display_name)

    async def login(self, email, password):
        if self.error:
            raise self.error
        return User(id="uid-1", email=email)

    async def logout(self):
        self.logged_out = True


def quote(symbol: str, price: str, name: Optional[str] = None) -> Quote:
    return Quote(symbol=symbol, price=Decimal(price), name=name)


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def audit_logger(store):
    return AuditLogger(store)


@pytest.fixture
def ledger(store, audit_logger):
    return LedgerService(store, audit_logger=audit_logger)


@pytest.fixture
def quote_agent():
    return FakeQuoteAgent()


@pytest.fixture
def portfolio(store, quote_agent, audit_logger):
    return PortfolioService(store, quote_agent, audit_logger=audit_logger)
