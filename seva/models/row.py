"""Row codec: positional spreadsheet cells <-> typed sign-up rows."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from seva.models.layout import ColumnLayout

_LEADING_INT = re.compile(r"^[+-]?\d+")


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InvalidCount:
    """A count cell that does not start with a base-10 integer."""

    raw: str


@dataclass
class SignupRow:
    row_number: int  # 1-based row in the sheet
    item: str = ""
    quantity: str = ""
    count: int | InvalidCount | None = None  # None when the layout has no count column
    name: str = ""
    phone: str = ""
    email: str = ""
    notes: str = ""
    signed_up_on: str = ""
    extras: dict[str, str] = field(default_factory=dict)
    cells: list[Any] = field(default_factory=list, repr=False, compare=False)

    @property
    def has_signer(self) -> bool:
        return bool(self.name or self.email or self.phone)

    @property
    def capacity(self) -> Optional[int]:
        """Remaining capacity, or None when the count cell is unusable."""
        if self.count is None:
            return 1
        if isinstance(self.count, InvalidCount):
            return None
        return self.count


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

def _cell(cells: Sequence[Any], index: Optional[int]) -> str:
    if index is None or index >= len(cells) or cells[index] is None:
        return ""
    return str(cells[index]).strip()


def parse_count(raw: str) -> int | InvalidCount:
    """Parse a count cell the way a spreadsheet user means it.

    Leading integer digits win ("3 boxes" -> 3); anything else, including
    an empty cell, becomes InvalidCount so it can never reach arithmetic.
    """
    match = _LEADING_INT.match(raw.strip())
    if match is None:
        return InvalidCount(raw)
    return int(match.group(0))


def decode_row(cells: Sequence[Any], layout: ColumnLayout, row_number: int) -> SignupRow:
    """Build a SignupRow from raw cells. Missing cells read as empty strings."""
    count: int | InvalidCount | None = None
    if layout.count is not None:
        count = parse_count(_cell(cells, layout.count))
    return SignupRow(
        row_number=row_number,
        item=_cell(cells, layout.item),
        quantity=_cell(cells, layout.quantity),
        count=count,
        name=_cell(cells, layout.name),
        phone=_cell(cells, layout.phone),
        email=_cell(cells, layout.email),
        notes=_cell(cells, layout.notes),
        signed_up_on=_cell(cells, layout.signed_up_on),
        extras={key: _cell(cells, index) for key, index in layout.extras.items()},
        cells=list(cells),
    )


def encode_row(row: SignupRow, layout: ColumnLayout) -> list[Any]:
    """Write a SignupRow back into cells.

    The row's original cells are copied first, so columns the layout does
    not know about keep their values and position.
    """
    cells: list[Any] = list(row.cells)
    if len(cells) < layout.width:
        cells.extend([""] * (layout.width - len(cells)))

    cells[layout.item] = row.item
    cells[layout.name] = row.name
    cells[layout.phone] = row.phone
    cells[layout.email] = row.email
    cells[layout.notes] = row.notes
    cells[layout.signed_up_on] = row.signed_up_on
    if layout.quantity is not None:
        cells[layout.quantity] = row.quantity
    if layout.count is not None:
        count = row.count
        if isinstance(count, InvalidCount):
            cells[layout.count] = count.raw
        else:
            cells[layout.count] = "" if count is None else count
    for key, index in layout.extras.items():
        cells[index] = row.extras.get(key, "")
    return cells
