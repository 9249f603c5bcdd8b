"""
Ledger Consistency Rules

INVARIANT: an account's balance equals its opening balance plus the
signed sum of every transaction currently posted against it.

These are pure functions. They never mutate the account they are given
and never touch storage; LedgerService persists what they return.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from moneytracker.models.finance import Account, TransactionType


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidAmountError(LedgerError):
    """Amount is not a positive finite number."""
    pass


class MissingFieldError(LedgerError):
    """A required transaction field is empty."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is required")


class UnsupportedTransactionTypeError(LedgerError):
    """Transaction type has no balance rule (Transfer or unknown)."""
    pass


def _to_decimal(value: Any, label: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(f"{label} is required")

    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(f"{label} must be a number, got {value!r}")

    if not number.is_finite():
        raise InvalidAmountError(f"{label} must be a finite number")
    return number


def validate_amount(value: Any) -> Decimal:
    """
    Parse and check a transaction amount.

    Accepts Decimal, int, float or numeric strings. Floats go through
    str() so 0.1 stays 0.1.

    Raises:
        InvalidAmountError: non-numeric, NaN, infinite, zero or negative
    """
    amount = _to_decimal(value, "Amount")
    if amount <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    return amount


def validate_balance(value: Any) -> Decimal:
    """Parse an opening balance; zero and negative (overdrawn) are allowed."""
    if value is None or value == "":
        return Decimal("0")
    return _to_decimal(value, "Balance")


def signed_amount(amount: Decimal, transaction_type: TransactionType) -> Decimal:
    """Balance delta for a transaction: +amount for income, -amount for expense."""
    try:
        transaction_type = TransactionType(transaction_type)
    except ValueError:
        raise UnsupportedTransactionTypeError(
            f"Unknown transaction type: {transaction_type!r}"
        ) from None
    if transaction_type == TransactionType.INCOME:
        return amount
    if transaction_type == TransactionType.EXPENSE:
        return -amount
    raise UnsupportedTransactionTypeError(
        "Transfer transactions are not supported yet: "
        "they need a source and a destination account"
    )


def post_transaction(
    account: Account,
    amount: Any,
    transaction_type: TransactionType,
) -> Account:
    """Return a copy of `account` with the transaction applied."""
    delta = signed_amount(validate_amount(amount), transaction_type)
    return account.model_copy(update={"balance": account.balance + delta})


def reverse_transaction(
    account: Account,
    amount: Any,
    transaction_type: TransactionType,
) -> Account:
    """Return a copy of `account` with the transaction undone exactly."""
    delta = signed_amount(validate_amount(amount), transaction_type)
    return account.model_copy(update={"balance": account.balance - delta})
