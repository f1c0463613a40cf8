"""CSV export of completed sign-ups."""

from __future__ import annotations

import csv
import io
from typing import Iterable

from seva.models.catalog import SheetSummary
from seva.models.row import InvalidCount, SignupRow
from seva.models.sheet import ParsedSheet

EXPORT_COLUMNS = [
    "date",
    "location",
    "title",
    "description",
    "item",
    "quantity",
    "itemCount",
    "notes",
    "name",
    "email",
    "phoneNumber",
    "signedUpOn",
]


def export_record(summary: SheetSummary, parsed: ParsedSheet, signee: SignupRow) -> dict:
    count = signee.count
    if count is None:
        count = ""
    elif isinstance(count, InvalidCount):
        count = count.raw
    return {
        "date": summary.date.strftime("%m/%d/%Y"),
        "location": parsed.location,
        "title": parsed.title,
        "description": parsed.description,
        "item": signee.item,
        "quantity": signee.quantity,
        "itemCount": count,
        "notes": signee.notes,
        "name": signee.name,
        "email": signee.email,
        "phoneNumber": signee.phone,
        "signedUpOn": signee.signed_up_on,
    }


def render_csv(records: Iterable[tuple[SheetSummary, ParsedSheet, SignupRow]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for summary, parsed, signee in records:
        writer.writerow(export_record(summary, parsed, signee))
    return buffer.getvalue()
