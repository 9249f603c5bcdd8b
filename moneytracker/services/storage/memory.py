"""
In-Memory Document Store

Used by the test suite and for local runs without Google credentials.
Documents are deep-copied on the way in and out so callers can never
mutate stored state by accident.
"""

import copy
from typing import Any, Optional

from moneytracker.services.storage.interface import OWNER_FIELD, DocumentStore


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed implementation of DocumentStore."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def list_by_owner(
        self,
        collection: str,
        user_id: str,
    ) -> list[dict[str, Any]]:
        return [
            {**copy.deepcopy(data), "id": doc_id}
            for doc_id, data in self._collection(collection).items()
            if data.get(OWNER_FIELD) == user_id
        ]

    async def get(
        self,
        collection: str,
        doc_id: str,
    ) -> Optional[dict[str, Any]]:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return {**copy.deepcopy(data), "id": doc_id}

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
    ) -> None:
        existing = self._collection(collection).setdefault(doc_id, {})
        existing.update(
            {k: copy.deepcopy(v) for k, v in fields.items() if k != "id"}
        )

    async def delete(self, collection: str, doc_id: str) -> bool:
        return self._collection(collection).pop(doc_id, None) is not None
