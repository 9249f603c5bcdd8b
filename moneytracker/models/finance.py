"""
Core Data Models for Money Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable to and from the document store
4. Carry the owning user on every record

DESIGN DECISION: Money and share counts are Decimal, never float.
Values coming from forms or from the quote service are converted through
str() so binary float noise never reaches a balance.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


DEFAULT_CURRENCY = "TWD"
NAME_MAX_LENGTH = 200

EXPENSE_CATEGORIES = [
    "Food & Dining",
    "Transportation",
    "Housing",
    "Utilities",
    "Healthcare",
    "Entertainment",
    "Shopping",
    "Education",
    "Travel",
    "Other",
]

INCOME_CATEGORIES = [
    "Salary",
    "Bonus",
    "Investment Dividends",
    "Freelance",
    "Gift",
    "Other",
]


def new_id() -> str:
    """Generate a document id."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Kinds of account a user can hold."""
    BANK = "Bank"
    CASH = "Cash"
    INVESTMENT = "Investment"


class TransactionType(str, Enum):
    """
    Transaction direction.

    The amount is always stored positive; the type gives the sign.
    TRANSFER is declared but has no dual-account handling and is
    rejected by the ledger.
    """
    INCOME = "Income"
    EXPENSE = "Expense"
    TRANSFER = "Transfer"


# =============================================================================
# OWNED RECORDS
# =============================================================================

class User(BaseModel):
    """An authenticated user. Ownership key for every other record."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, max_length=254)
    display_name: str = Field(default="User", max_length=100)


class Account(BaseModel):
    """
    A bank, cash or investment account.

    INVARIANT: balance is denominated in `currency` and reflects
    every transaction posted against this account.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    type: AccountType = AccountType.BANK
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Current balance in the account currency"
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code"
    )
    bank_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class Transaction(BaseModel):
    """
    An income or expense posted against one account.

    Transactions are immutable: an edit is a delete followed by a
    new transaction, so the balance adjustment can be reversed exactly.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive magnitude; the sign comes from `type`"
    )
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=100)
    date: datetime = Field(default_factory=utc_now)
    note: Optional[str] = Field(default=None, max_length=500)

    @property
    def signed_amount(self) -> Decimal:
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount


class StockPosition(BaseModel):
    """A held quantity of a single ticker with cost and price tracking."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    symbol: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Ticker, e.g. 2330.TW or AAPL"
    )
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    shares: Decimal = Field(..., ge=0)
    avg_cost: Decimal = Field(..., ge=0, description="Average cost per share")
    current_price: Decimal = Field(..., ge=0, description="Last fetched price")
    last_updated: datetime = Field(default_factory=utc_now)

    @field_validator('symbol')
    @classmethod
    def upper_symbol(cls, v: str) -> str:
        return v.upper()


class ReconciliationTask(BaseModel):
    """
    Raised when a two-step ledger write could not be completed or undone.

    Someone has to look at the account and the transaction by hand.
    """

    id: str = Field(default_factory=new_id)
    user_id: str
    operation: str = Field(..., pattern="^(record|delete)$")
    account_id: str
    transaction_id: str
    expected_balance: Decimal
    reason: str
    created_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# DERIVED VALUES
# =============================================================================

class Quote(BaseModel):
    """A price quote returned by the quote service."""
    model_config = ConfigDict(str_strip_whitespace=True)

    symbol: str
    price: Decimal = Field(..., gt=0)
    name: Optional[str] = Field(default=None, max_length=NAME_MAX_LENGTH)
    sources: list[str] = Field(
        default_factory=list,
        description="Web pages the quote was grounded on"
    )


class PositionValuation(BaseModel):
    """Market value and profit of one position."""

    market_value: Decimal
    cost_basis: Decimal
    profit: Decimal
    profit_percent: Decimal


class MonthlySummary(BaseModel):
    """Income and expense totals for one calendar month."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net_savings(self) -> Decimal:
        return self.income - self.expense


class DashboardSummary(BaseModel):
    """Figures shown on the dashboard."""

    total_balance: Decimal
    total_stock_value: Decimal
    net_worth: Decimal
    expense_breakdown: dict[str, Decimal] = Field(default_factory=dict)


class RefreshResult(BaseModel):
    """Outcome of refreshing one position's price."""

    position_id: str
    symbol: str
    success: bool
    message: str
    position: StockPosition = Field(
        ...,
        description="The position after the refresh (unchanged on failure)"
    )


class BatchRefreshResult(BaseModel):
    """Outcome of refreshing every position of a user."""

    results: list[RefreshResult] = Field(default_factory=list)

    @property
    def updated(self) -> list[str]:
        return [r.symbol for r in self.results if r.success]

    @property
    def failed(self) -> list[str]:
        return [r.symbol for r in self.results if not r.success]

    @property
    def failure_messages(self) -> list[str]:
        return [r.message for r in self.results if not r.success]
