"""Registration sheet: search with contact details blanked, and row saves."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from seva.store import SheetsStore, quote_title, row_range

log = logging.getLogger(__name__)

REGISTRATION_COLUMNS = [
    "ignore",
    "fathersfirstname",
    "fatherslastname",
    "fathersemail",
    "fathersphone",
    "mothersfirstname",
    "motherslastname",
    "mothersemail",
    "mothersphone",
    "firstnameofchild",
    "lastnameofchild",
    "ssegroupofchild",
    "schoolgradeofchild",
    "allergiesofchild",
    "comments",
    "centercommunication",
    "expectations",
    "interesting",
    "notinteresting",
    "change",
]

CONTACT_COLUMNS = ("fathersemail", "fathersphone", "mothersemail", "mothersphone")

MIN_QUERY_LENGTH = 3


def _redact(row: Sequence[Any], row_number: int) -> list[str]:
    """Column A becomes the row number; contact columns are blanked."""
    cells = ["" if c is None else str(c) for c in row]
    if len(cells) < len(REGISTRATION_COLUMNS):
        cells.extend([""] * (len(REGISTRATION_COLUMNS) - len(cells)))
    cells[0] = str(row_number)
    for column in CONTACT_COLUMNS:
        cells[REGISTRATION_COLUMNS.index(column)] = ""
    return cells


def search_registrations(
    store: SheetsStore, document_id: str, sheet_title: str, query: str
) -> list[list[str]]:
    """Rows with any cell containing ``query`` (case-insensitive).

    Queries shorter than three characters return nothing.
    """
    needle = (query or "").strip().lower()
    if len(needle) < MIN_QUERY_LENGTH:
        return []

    rows = store.read_range(document_id, f"{quote_title(sheet_title)}!A:Z")
    matches = []
    for index, row in enumerate(rows):
        redacted = _redact(row, index + 1)
        if any(needle in cell.lower() for cell in redacted[1:]):
            matches.append(redacted)
    return matches


def save_registrations(
    store: SheetsStore, document_id: str, sheet_title: str, registrations: Sequence[Sequence[Any]]
) -> int:
    """Append rows whose column A is empty; overwrite the row named in column A otherwise.

    Returns the number of rows written.
    """
    rows = [r for r in registrations if r]
    targets = [str(r[0] or "").strip() for r in rows]
    for target in targets:
        if target and (not target.isdigit() or int(target) < 1):
            raise ValueError(f"Invalid registration row reference {target!r}")

    written = 0
    for registration, target in zip(rows, targets):
        if target:
            store.update_range(document_id, row_range(sheet_title, int(target)), registration)
        else:
            store.append_row(document_id, sheet_title, registration)
        written += 1
    log.info("Saved %d registration rows to %s", written, sheet_title)
    return written
