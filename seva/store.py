"""Google Sheets document store.

All sign-up state lives in remote spreadsheets; this module is the only
place that talks to them. Every call goes to the API, nothing is cached
between requests.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence

import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from seva.errors import UpstreamUnavailable

log = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
]


# ---------------------------------------------------------------------------
# Types and range helpers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DocumentRef:
    id: str
    name: str


@dataclass(frozen=True)
class SheetRef:
    handle: int  # numeric sheetId, needed for structural edits
    title: str


def quote_title(title: str) -> str:
    """Quote a sheet title for A1 notation ('It''s' style escaping)."""
    return "'" + title.replace("'", "''") + "'"


def sheet_range(title: str) -> str:
    return quote_title(title)


def row_range(title: str, row_number: int) -> str:
    """A1 range covering one whole 1-based row."""
    return f"{quote_title(title)}!{row_number}:{row_number}"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

def get_client(
    service_account_file: str, service_account_json: Optional[str] = None
) -> gspread.Client:
    """Authorise a gspread client from a service-account key.

    Inline JSON wins over the key file when both are configured.
    """
    if service_account_json:
        try:
            info = json.loads(service_account_json)
        except json.JSONDecodeError as exc:
            raise RuntimeError("Invalid service account JSON payload.") from exc
        creds = Credentials.from_service_account_info(info, scopes=SCOPES)
    else:
        creds = Credentials.from_service_account_file(service_account_file, scopes=SCOPES)
    log.debug("Google Sheets client authorised for %s", creds.service_account_email)
    return gspread.authorize(creds)


@contextmanager
def _upstream(action: str) -> Iterator[None]:
    try:
        yield
    except (gspread.exceptions.GSpreadException, GoogleAuthError, requests.RequestException) as exc:
        log.error("Document store call failed while %s: %s", action, exc)
        raise UpstreamUnavailable(f"Document store unavailable while {action}") from exc


class SheetsStore:
    """Document store backed by the Sheets and Drive APIs through gspread."""

    def __init__(self, client: gspread.Client):
        self.client = client

    def _open(self, document_id: str) -> gspread.Spreadsheet:
        return self.client.open_by_key(document_id)

    def list_documents(self) -> list[DocumentRef]:
        with _upstream("listing spreadsheets"):
            files = self.client.list_spreadsheet_files()
        return [DocumentRef(id=f["id"], name=f.get("name", "")) for f in files]

    def get_sheet_metadata(self, document_id: str) -> list[SheetRef]:
        with _upstream(f"reading metadata of {document_id}"):
            metadata = self._open(document_id).fetch_sheet_metadata()
        return [
            SheetRef(handle=s["properties"]["sheetId"], title=s["properties"]["title"])
            for s in metadata.get("sheets", [])
        ]

    def read_range(self, document_id: str, range_spec: str) -> list[list[Any]]:
        with _upstream(f"reading {range_spec}"):
            response = self._open(document_id).values_get(range_spec)
        return response.get("values", [])

    def append_row(self, document_id: str, sheet_title: str, row: Sequence[Any]) -> None:
        with _upstream(f"appending to {sheet_title}"):
            self._open(document_id).values_append(
                sheet_range(sheet_title),
                params={"valueInputOption": "RAW"},
                body={"majorDimension": "ROWS", "values": [list(row)]},
            )
        log.info("Appended row to %s/%s", document_id, sheet_title)

    def update_range(self, document_id: str, range_spec: str, row: Sequence[Any]) -> None:
        with _upstream(f"updating {range_spec}"):
            self._open(document_id).values_update(
                range_spec,
                params={"valueInputOption": "RAW"},
                body={"majorDimension": "ROWS", "values": [list(row)]},
            )
        log.info("Updated %s in %s", range_spec, document_id)

    def delete_rows(self, document_id: str, sheet_handle: int, start_index: int, end_index: int) -> None:
        """Delete rows [start_index, end_index) (0-based) from a sheet.

        Rows below the deleted range move up.
        """
        body = {
            "requests": [
                {
                    "deleteDimension": {
                        "range": {
                            "sheetId": sheet_handle,
                            "dimension": "ROWS",
                            "startIndex": start_index,
                            "endIndex": end_index,
                        }
                    }
                }
            ]
        }
        with _upstream(f"deleting rows {start_index}-{end_index}"):
            self._open(document_id).batch_update(body)
        log.info(
            "Deleted rows %d-%d of sheet %s in %s",
            start_index + 1, end_index, sheet_handle, document_id,
        )
