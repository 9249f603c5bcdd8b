"""
Abstract Document Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a hosted document database later
2. Use in-memory storage for testing
3. Keep ledger and portfolio logic decoupled from storage implementation

The interface is intentionally small: records are plain field mappings
grouped in named collections, each owned by one user.

There is NO multi-document transaction. Callers that must keep two
documents consistent (transaction + account balance) compensate
themselves; see LedgerService.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


# Collection names
USERS = "users"
ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"
STOCKS = "stocks"
RECONCILIATION = "reconciliation"
AUDIT_LOG = "audit_log"

OWNER_FIELD = "user_id"


class DocumentStore(ABC):
    """
    Abstract interface for document storage operations.

    Any storage implementation (Google Sheets, Firestore, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_by_owner(
        self,
        collection: str,
        user_id: str,
    ) -> list[dict[str, Any]]:
        """
        List every document in a collection owned by a user.

        Returns:
            Documents as dicts, each including its "id"

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def get(
        self,
        collection: str,
        doc_id: str,
    ) -> Optional[dict[str, Any]]:
        """
        Retrieve one document by id.

        Returns:
            The document including its "id", or None if absent
        """
        pass

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
    ) -> None:
        """
        Create or update a document with MERGE semantics.

        Fields not named in `fields` keep their stored values.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """
        Delete a document.

        Returns:
            True if a document was deleted, False if none existed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
