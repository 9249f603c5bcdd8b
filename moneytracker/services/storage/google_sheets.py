"""
Google Sheets Document Store

The hosted backend: one spreadsheet the user can open and read.

Each collection is one worksheet. A document is one row:
    id | user_id | updated_at | data_json
The full field mapping lives in data_json so documents can grow new
fields without sheet migrations.

TRADEOFFS:
- Not suitable for high-volume data (fine for one person's ledger)
- No transactions (LedgerService compensates)
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from moneytracker.config import GoogleSheetsSettings
from moneytracker.services.storage.interface import (
    OWNER_FIELD,
    ConnectionError,
    DocumentStore,
    StorageError,
)


DOCUMENT_COLUMNS = [
    "id",
    "user_id",
    "updated_at",
    "data_json",
]

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: GoogleSheetsSettings):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_collection_sheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        if collection in self._worksheets:
            return self._worksheets[collection]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(collection)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=collection,
                rows=self._settings.worksheet_rows,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)

        self._worksheets[collection] = sheet
        return sheet


class GoogleSheetsDocumentStore(DocumentStore):
    """
    Google Sheets implementation of the document store.

    Rows are located by scanning the id column; collections are small
    (one user's accounts, transactions and positions).
    """

    def __init__(self, client: GoogleSheetsClient):
        self._client = client

    @staticmethod
    def _row_to_document(row: list) -> dict[str, Any]:
        """Convert a spreadsheet row to a document."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        data = json.loads(safe_get(3, "{}"))
        data["id"] = safe_get(0)
        return data

    @staticmethod
    def _document_to_row(doc_id: str, data: dict[str, Any]) -> list:
        """Convert a document to a spreadsheet row."""
        body = {k: v for k, v in data.items() if k != "id"}
        return [
            doc_id,
            str(body.get(OWNER_FIELD, "")),
            datetime.now(timezone.utc).isoformat(),
            json.dumps(body, default=str, sort_keys=True),
        ]

    @staticmethod
    def _find_row(all_rows: list[list], doc_id: str) -> Optional[int]:
        """Return the 1-based sheet row number holding doc_id."""
        # Row 1 is the header
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == doc_id:
                return idx
        return None

    async def list_by_owner(
        self,
        collection: str,
        user_id: str,
    ) -> list[dict[str, Any]]:
        try:
            sheet = self._client.get_collection_sheet(collection)
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list {collection}: {e}")

        documents = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if len(row) < 2 or row[1] != user_id:
                continue
            documents.append(self._row_to_document(row))
        return documents

    async def get(
        self,
        collection: str,
        doc_id: str,
    ) -> Optional[dict[str, Any]]:
        try:
            sheet = self._client.get_collection_sheet(collection)
            all_rows = sheet.get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to get {collection}/{doc_id}: {e}")

        idx = self._find_row(all_rows, doc_id)
        if idx is None:
            return None
        return self._row_to_document(all_rows[idx - 1])

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def upsert(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
    ) -> None:
        try:
            sheet = self._client.get_collection_sheet(collection)
            all_rows = sheet.get_all_values()

            idx = self._find_row(all_rows, doc_id)
            if idx is None:
                sheet.append_row(
                    self._document_to_row(doc_id, fields),
                    value_input_option="RAW",
                )
                return

            merged = self._row_to_document(all_rows[idx - 1])
            merged.update(fields)
            sheet.update(
                range_name=f"A{idx}:D{idx}",
                values=[self._document_to_row(doc_id, merged)],
                value_input_option="RAW",
            )
        except Exception as e:
            raise StorageError(f"Failed to save {collection}/{doc_id}: {e}")

    async def delete(self, collection: str, doc_id: str) -> bool:
        try:
            sheet = self._client.get_collection_sheet(collection)
            all_rows = sheet.get_all_values()

            idx = self._find_row(all_rows, doc_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete {collection}/{doc_id}: {e}")
