"""Pure reconciliation rules: no store access, no I/O."""

from __future__ import annotations

from collections import namedtuple
from enum import Enum
from typing import Optional

from seva.models.row import InvalidCount, SignupRow


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

RuleResult = namedtuple("RuleResult", ["allowed", "reason"])


class RowOutcome(Enum):
    APPLIED = "applied"
    ROW_GONE = "row_gone"            # nothing at that row any more
    HEADER_ROW = "header_row"        # row is at or above the "#" sentinel
    NOT_OPEN = "not_open"            # row already carries a signer
    ITEM_MISMATCH = "item_mismatch"  # row now holds a different item
    INVALID_COUNT = "invalid_count"  # count cell is not a number
    INVALID_REQUEST = "invalid_request"
    INSUFFICIENT = "insufficient"    # asked for more than remains


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def check_below_sentinel(row_number: int, sentinel_row: int) -> RuleResult:
    if row_number <= sentinel_row:
        return RuleResult(False, f"Row {row_number} is part of the sheet header")
    return RuleResult(True, "")


def check_row_open(row: SignupRow) -> RuleResult:
    if row.has_signer:
        return RuleResult(False, f"Row {row.row_number} is already signed up")
    return RuleResult(True, "")


def check_item_matches(row: SignupRow, expected_item: Optional[str]) -> RuleResult:
    """Rows are addressed by number; an expected item name guards against shifted rows."""
    if expected_item is None or row.item == expected_item.strip():
        return RuleResult(True, "")
    return RuleResult(False, f"Row {row.row_number} holds {row.item!r}, not {expected_item!r}")


def check_count_valid(row: SignupRow) -> RuleResult:
    if isinstance(row.count, InvalidCount):
        return RuleResult(False, f"Row {row.row_number} has an unreadable count {row.count.raw!r}")
    return RuleResult(True, "")


def check_requested(requested: int) -> RuleResult:
    if requested < 1:
        return RuleResult(False, f"Requested count must be at least 1 (got {requested})")
    return RuleResult(True, "")


def check_capacity(available: int, requested: int) -> RuleResult:
    """Check that the row still has room for the requested count."""
    if requested > available:
        return RuleResult(False, f"Only {available} left ({requested} requested)")
    return RuleResult(True, "")


def remaining_after(available: int, requested: int) -> int:
    return available - requested
