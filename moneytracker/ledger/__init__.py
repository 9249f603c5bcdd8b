"""Ledger package: balance rules and the service that persists them."""

from moneytracker.ledger.rules import (
    InvalidAmountError,
    LedgerError,
    MissingFieldError,
    UnsupportedTransactionTypeError,
    post_transaction,
    reverse_transaction,
    signed_amount,
    validate_amount,
    validate_balance,
)
from moneytracker.ledger.service import (
    AccountNotFoundError,
    LedgerService,
    LedgerWriteError,
    OwnershipError,
    TransactionNotFoundError,
)

__all__ = [
    "AccountNotFoundError",
    "InvalidAmountError",
    "LedgerError",
    "LedgerService",
    "LedgerWriteError",
    "MissingFieldError",
    "OwnershipError",
    "TransactionNotFoundError",
    "UnsupportedTransactionTypeError",
    "post_transaction",
    "reverse_transaction",
    "signed_amount",
    "validate_amount",
    "validate_balance",
]
