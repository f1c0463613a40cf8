"""Sign-up sheet parsing and the pydantic views built from parsed sheets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from pydantic import BaseModel

from seva.errors import MalformedSheet
from seva.models.layout import SignupDomain
from seva.models.row import InvalidCount, SignupRow, decode_row

SENTINEL = "#"


# ---------------------------------------------------------------------------
# Parse result
# ---------------------------------------------------------------------------

@dataclass
class ParsedSheet:
    date: str
    location: str
    title: str
    description: str
    tags: list[str]
    sentinel_row: int  # 1-based row number of the "#" row
    open_items: list[SignupRow] = field(default_factory=list)
    signees: list[SignupRow] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def find_label(rows: Sequence[Sequence[Any]], label: str) -> int:
    """Return the index of the first row whose column A contains ``label``.

    Matching is a case-insensitive substring test, so "Updated Date" is
    found for "date". Returns -1 when no row matches.
    """
    needle = label.lower()
    for index, row in enumerate(rows):
        first = str(row[0]) if row and row[0] is not None else ""
        if needle in first.lower().strip():
            return index
    return -1


def _value(row: Sequence[Any], index: int = 1) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index])


def _parse_tags(row: Sequence[Any]) -> list[str]:
    joined = "".join(str(c) for c in row[1:] if c is not None).strip()
    return [tag.strip().lower() for tag in joined.split(",") if tag.strip()]


def parse_sheet(rows: Sequence[Sequence[Any]], domain: SignupDomain) -> ParsedSheet:
    """Split a sheet into header fields, open items and signee rows.

    Raises MalformedSheet when the sentinel row is missing or any required
    header is missing or placed at/after the sentinel.
    """
    sentinel = find_label(rows, SENTINEL)
    if sentinel == -1:
        raise MalformedSheet("no '#' row marking the start of the item table")

    positions: dict[str, int] = {}
    for label in domain.required_headers:
        index = find_label(rows, label)
        if index == -1 or index >= sentinel:
            raise MalformedSheet(f"header '{label}' missing or below the '#' row")
        positions[label] = index

    title = ""
    if "title" in positions:
        title = _value(rows[positions["title"]])

    tags: list[str] = []
    tags_at = find_label(rows, "tags")
    if tags_at != -1 and tags_at <= sentinel:
        tags = _parse_tags(rows[tags_at])

    description_row = rows[positions["description"]]
    parsed = ParsedSheet(
        date=_value(rows[positions["date"]]),
        location=_value(rows[positions["location"]]),
        title=title,
        description=" ".join(str(c) for c in description_row[1:] if c is not None),
        tags=tags,
        sentinel_row=sentinel + 1,
    )

    layout = domain.layout
    for index in range(sentinel + 1, len(rows)):
        cells = rows[index]
        if not any(str(c).strip() for c in cells if c is not None):
            continue
        row = decode_row(cells, layout, index + 1)
        if row.has_signer:
            parsed.signees.append(row)
        elif is_open_item(row, layout.claims_in_place):
            parsed.open_items.append(row)
    return parsed


def is_open_item(row: SignupRow, claims_in_place: bool = False) -> bool:
    """An open item has no signer and a usable, positive capacity."""
    if row.has_signer:
        return False
    if claims_in_place and not row.item:
        return False
    capacity = row.capacity
    return capacity is not None and capacity > 0


# ---------------------------------------------------------------------------
# Pydantic views
# ---------------------------------------------------------------------------

class SignupItemView(BaseModel):
    row: int
    item: str
    quantity: str
    count: Optional[int]
    notes: str
    extras: dict[str, str]


class SigneeView(SignupItemView):
    name: str
    email: str
    phone_number: str
    signed_up_on: str


class SignupSheetView(BaseModel):
    document_id: str
    sheet_title: str
    date: str
    location: str
    title: str
    description: str
    tags: list[str]
    items: list[SignupItemView]
    signees: list[SigneeView]


def _count_out(row: SignupRow) -> Optional[int]:
    if row.count is None or isinstance(row.count, InvalidCount):
        return None
    return row.count


def item_view(row: SignupRow) -> SignupItemView:
    return SignupItemView(
        row=row.row_number,
        item=row.item,
        quantity=row.quantity,
        count=row.capacity,
        notes=row.notes,
        extras=dict(row.extras),
    )


def signee_view(row: SignupRow) -> SigneeView:
    return SigneeView(
        row=row.row_number,
        item=row.item,
        quantity=row.quantity,
        count=_count_out(row),
        notes=row.notes,
        extras=dict(row.extras),
        name=row.name,
        email=row.email,
        phone_number=row.phone,
        signed_up_on=row.signed_up_on,
    )


def sheet_view(
    parsed: ParsedSheet,
    document_id: str,
    sheet_title: str,
    signees: Sequence[SignupRow] = (),
) -> SignupSheetView:
    return SignupSheetView(
        document_id=document_id,
        sheet_title=sheet_title,
        date=parsed.date,
        location=parsed.location,
        title=parsed.title,
        description=parsed.description,
        tags=list(parsed.tags),
        items=[item_view(r) for r in parsed.open_items],
        signees=[signee_view(r) for r in signees],
    )
