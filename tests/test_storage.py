"""Tests for the document stores."""

import asyncio
import json
import pytest
from unittest.mock import MagicMock

from moneytracker.services.storage import (
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    StorageError,
)
from moneytracker.services.storage.google_sheets import DOCUMENT_COLUMNS


def run(coro):
    return asyncio.run(coro)


class TestInMemoryDocumentStore:
    """Tests for the in-memory store."""

    def test_upsert_merges(self):
        store = InMemoryDocumentStore()
        run(store.upsert("accounts", "a1", {"user_id": "u1", "name": "Bank", "balance": "10"}))
        run(store.upsert("accounts", "a1", {"balance": "25"}))

        assert run(store.get("accounts", "a1")) == {
            "id": "a1", "user_id": "u1", "name": "Bank", "balance": "25",
        }

    def test_list_by_owner(self):
        store = InMemoryDocumentStore()
        run(store.upsert("accounts", "a1", {"user_id": "u1"}))
        run(store.upsert("accounts", "a2", {"user_id": "u2"}))
        run(store.upsert("stocks", "s1", {"user_id": "u1"}))

        assert [d["id"] for d in run(store.list_by_owner("accounts", "u1"))] == ["a1"]
        assert run(store.list_by_owner("missing", "u1")) == []

    def test_returned_documents_are_copies(self):
        store = InMemoryDocumentStore()
        run(store.upsert("accounts", "a1", {"user_id": "u1", "tags": ["x"]}))

        doc = run(store.get("accounts", "a1"))
        doc["tags"].append("y")

        assert run(store.get("accounts", "a1"))["tags"] == ["x"]

    def test_delete(self):
        store = InMemoryDocumentStore()
        run(store.upsert("accounts", "a1", {"user_id": "u1"}))

        assert run(store.delete("accounts", "a1")) is True
        assert run(store.delete("accounts", "a1")) is False
        assert run(store.get("accounts", "a1")) is None


class TestGoogleSheetsDocumentStore:
    """Tests for the Sheets store with a mocked worksheet."""

    @pytest.fixture
    def sheet(self):
        sheet = MagicMock()
        sheet.get_all_values.return_value = [
            DOCUMENT_COLUMNS,
            ["a1", "u1", "2024-01-01T00:00:00+00:00",
             json.dumps({"user_id": "u1", "name": "Bank", "balance": "10"})],
            ["a2", "u2", "2024-01-01T00:00:00+00:00",
             json.dumps({"user_id": "u2", "name": "Other"})],
            ["", "", "", ""],
        ]
        return sheet

    @pytest.fixture
    def store(self, sheet):
        client = MagicMock()
        client.get_collection_sheet.return_value = sheet
        return GoogleSheetsDocumentStore(client)

    def test_list_by_owner(self, store):
        docs = run(store.list_by_owner("accounts", "u1"))
        assert docs == [{"id": "a1", "user_id": "u1", "name": "Bank", "balance": "10"}]

    def test_get(self, store):
        assert run(store.get("accounts", "a2"))["name"] == "Other"
        assert run(store.get("accounts", "zz")) is None

    def test_upsert_existing_merges(self, store, sheet):
        run(store.upsert("accounts", "a1", {"balance": "25"}))

        sheet.append_row.assert_not_called()
        kwargs = sheet.update.call_args.kwargs
        assert kwargs["range_name"] == "A2:D2"
        [row] = kwargs["values"]
        assert row[:2] == ["a1", "u1"]
        assert json.loads(row[3]) == {"user_id": "u1", "name": "Bank", "balance": "25"}

    def test_upsert_new_appends(self, store, sheet):
        run(store.upsert("accounts", "a3", {"user_id": "u3", "name": "Cash"}))

        sheet.update.assert_not_called()
        row = sheet.append_row.call_args.args[0]
        assert row[0] == "a3"
        assert row[1] == "u3"
        assert json.loads(row[3]) == {"user_id": "u3", "name": "Cash"}

    def test_delete(self, store, sheet):
        assert run(store.delete("accounts", "a2")) is True
        sheet.delete_rows.assert_called_once_with(3)
        assert run(store.delete("accounts", "zz")) is False

    def test_read_failure_is_storage_error(self, store, sheet):
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(StorageError):
            run(store.list_by_owner("accounts", "u1"))
