"""
Storage Services Package

Provides the abstract document store interface and its implementations.
Google Sheets is the hosted backend; the in-memory store serves tests
and local runs.
"""

from moneytracker.services.storage.interface import (
    ACCOUNTS,
    AUDIT_LOG,
    RECONCILIATION,
    STOCKS,
    TRANSACTIONS,
    USERS,
    ConnectionError,
    DocumentStore,
    NotFoundError,
    StorageError,
)
from moneytracker.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)
from moneytracker.services.storage.memory import InMemoryDocumentStore

__all__ = [
    # Collections
    "ACCOUNTS",
    "AUDIT_LOG",
    "RECONCILIATION",
    "STOCKS",
    "TRANSACTIONS",
    "USERS",
    # Interface
    "DocumentStore",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]
