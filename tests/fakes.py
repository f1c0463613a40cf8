"""In-memory stand-ins for the remote collaborators."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional

from seva.auth import CallerContext
from seva.errors import Unauthorized
from seva.store import DocumentRef, SheetRef

_RANGE = re.compile(r"^'((?:[^']|'')*)'(?:!(.+))?$")
_ROW = re.compile(r"^(\d+):(\d+)$")

NOW = datetime(2030, 1, 5, 10, 0, 0)
STAMP = "Sat, Jan/05/2030 10:00:00.000 AM"  # NOW as written into signee rows


class FakeStore:
    """Document store over plain lists, with Sheets-like row semantics.

    Appends land after the last row, deletions shift later rows up, and
    reads of empty rows return nothing.
    """

    def __init__(self):
        self.documents: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self._next_handle = 100

    # -- setup helpers -------------------------------------------------------

    def add_document(self, document_id: str, name: str) -> None:
        self.documents[document_id] = {"name": name, "sheets": {}}

    def add_sheet(self, document_id: str, title: str, rows: list[list[Any]], handle: Optional[int] = None) -> None:
        if document_id not in self.documents:
            self.add_document(document_id, document_id)
        if handle is None:
            self._next_handle += 1
            handle = self._next_handle
        self.documents[document_id]["sheets"][title] = {
            "handle": handle,
            "rows": [list(r) for r in rows],
        }

    def rows(self, document_id: str, title: str) -> list[list[Any]]:
        return self.documents[document_id]["sheets"][title]["rows"]

    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("append", "update", "delete")]

    # -- store interface -----------------------------------------------------

    def _resolve(self, document_id: str, range_spec: str):
        match = _RANGE.match(range_spec)
        assert match, f"bad range {range_spec!r}"
        title = match.group(1).replace("''", "'")
        rows = self.rows(document_id, title)
        suffix = match.group(2)
        row_match = _ROW.match(suffix) if suffix else None
        return rows, row_match

    def list_documents(self) -> list[DocumentRef]:
        self.calls.append(("list",))
        return [DocumentRef(id=k, name=v["name"]) for k, v in self.documents.items()]

    def get_sheet_metadata(self, document_id: str) -> list[SheetRef]:
        self.calls.append(("metadata", document_id))
        sheets = self.documents[document_id]["sheets"]
        return [SheetRef(handle=s["handle"], title=t) for t, s in sheets.items()]

    def read_range(self, document_id: str, range_spec: str) -> list[list[Any]]:
        self.calls.append(("read", document_id, range_spec))
        rows, row_match = self._resolve(document_id, range_spec)
        if row_match is None:
            return [list(r) for r in rows]
        index = int(row_match.group(1)) - 1
        if index >= len(rows) or not any(str(c).strip() for c in rows[index]):
            return []
        return [list(rows[index])]

    def append_row(self, document_id: str, sheet_title: str, row) -> None:
        self.calls.append(("append", document_id, sheet_title, list(row)))
        self.rows(document_id, sheet_title).append(list(row))

    def update_range(self, document_id: str, range_spec: str, row) -> None:
        self.calls.append(("update", document_id, range_spec, list(row)))
        rows, row_match = self._resolve(document_id, range_spec)
        index = int(row_match.group(1)) - 1
        while len(rows) <= index:
            rows.append([])
        rows[index] = list(row)

    def delete_rows(self, document_id: str, sheet_handle: int, start_index: int, end_index: int) -> None:
        self.calls.append(("delete", document_id, sheet_handle, start_index, end_index))
        for sheet in self.documents[document_id]["sheets"].values():
            if sheet["handle"] == sheet_handle:
                del sheet["rows"][start_index:end_index]
                return
        raise AssertionError(f"no sheet with handle {sheet_handle}")


class FakeIdentity:
    """Maps literal tokens to callers."""

    def __init__(self, callers: dict[str, CallerContext]):
        self.callers = callers

    def resolve(self, token: str) -> CallerContext:
        caller = self.callers.get(token)
        if caller is None:
            raise Unauthorized("Invalid bearer token")
        return CallerContext(
            uid=caller.uid,
            email=caller.email,
            phone_number=caller.phone_number,
            name=caller.name,
        )


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple] = []

    def send_templated_message(self, recipients, template_name, params):
        self.sent.append(("template", list(recipients), template_name, params))
        return {"success": True, "error": None}

    def send_plain_message(self, recipients, subject, body):
        self.sent.append(("email", list(recipients), subject, body))
        return {"success": True, "error": None}

    def send_sms(self, recipients, body):
        self.sent.append(("sms", list(recipients), body))
        return {"success": True, "error": None}


def service_rows(*items: list[Any], title: str = "Cleaning") -> list[list[Any]]:
    """Header block of a service sheet followed by the given item rows."""
    return [
        ["date", "2030-01-05"],
        ["location", "Temple"],
        ["title", title],
        ["description", "Help", "clean"],
        ["tags", "seva, Kids"],
        ["#", "Item", "Quantity", "Count", "Name", "Phone", "Email", "Notes"],
        *[list(i) for i in items],
    ]


def devotion_rows(*items: list[Any]) -> list[list[Any]]:
    return [
        ["date", "2030-02-01"],
        ["location", "Hall"],
        ["description", "Thursday bhajans"],
        ["#"],
        *[list(i) for i in items],
    ]
