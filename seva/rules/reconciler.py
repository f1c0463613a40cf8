"""Sign-up reconciliation against a live sheet.

Combines a fresh read of the target row with the pure rule functions,
then writes the result back: a signee row is appended (or the row is
claimed in place for count-less layouts) and the open row is either
decremented or deleted once nothing remains.

There are no transactions. Each row is re-read immediately before it is
written, which narrows but does not close the window in which two
callers can both take the last unit of the same row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Sequence

from seva.auth import CallerContext
from seva.errors import MalformedSheet
from seva.models.layout import SignupDomain
from seva.models.row import SignupRow, decode_row, encode_row
from seva.models.sheet import ParsedSheet, parse_sheet
from seva.rules.pure import (
    RowOutcome,
    check_below_sentinel,
    check_capacity,
    check_count_valid,
    check_item_matches,
    check_requested,
    check_row_open,
    remaining_after,
)
from seva.store import SheetsStore, row_range, sheet_range

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass
class SignupEntry:
    row: int  # 1-based sheet row of the open item
    count: int = 1
    item: Optional[str] = None
    fields: dict[str, str] = field(default_factory=dict)


@dataclass
class RowResult:
    entry: SignupEntry
    outcome: RowOutcome
    reason: str = ""
    signee: Optional[SignupRow] = None
    remaining: Optional[int] = None
    removed: bool = False  # the open row was deleted from the sheet

    @property
    def applied(self) -> bool:
        return self.outcome is RowOutcome.APPLIED


@dataclass
class BatchResult:
    results: list[RowResult]
    notification: Optional[dict] = None

    @property
    def applied(self) -> list[RowResult]:
        return [r for r in self.results if r.applied]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def format_signup_timestamp(moment: datetime) -> str:
    """Human-readable stamp, e.g. ``Sat, Jan/05/2030 03:04:05.123 PM PST``."""
    millis = f"{moment.microsecond // 1000:03d}"
    return (
        moment.strftime("%a, %b/%d/%Y %I:%M:%S.") + millis + moment.strftime(" %p %Z")
    ).strip()


def build_signee(
    row: SignupRow,
    domain: SignupDomain,
    entry: SignupEntry,
    caller: CallerContext,
    stamp: str,
) -> SignupRow:
    """Copy an open row and stamp the caller onto it."""
    extras = dict(row.extras)
    notes = row.notes
    for name in domain.editable_fields:
        value = (entry.fields.get(name) or "").strip()
        if name == "notes":
            notes = value
        elif name in domain.layout.extras:
            extras[name] = value

    signee = replace(
        row,
        signed_up_on=stamp,
        name=caller.name,
        email=caller.email,
        phone=caller.phone_number,
        notes=notes,
        extras=extras,
    )
    if not domain.layout.claims_in_place:
        signee.count = entry.count
    return signee


def _sheet_handle(store: SheetsStore, document_id: str, sheet_title: str) -> int:
    for sheet in store.get_sheet_metadata(document_id):
        if sheet.title == sheet_title:
            return sheet.handle
    raise MalformedSheet(f"sheet {sheet_title!r} not found in {document_id}")


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

def reconcile(
    store: SheetsStore,
    domain: SignupDomain,
    document_id: str,
    sheet_title: str,
    entry: SignupEntry,
    caller: CallerContext,
    sentinel_row: int,
    now: Optional[datetime] = None,
) -> RowResult:
    """Apply one sign-up to one row.

    Rows that vanished, filled up or changed underneath the caller are
    left untouched and reported through the outcome, never raised.
    Store failures propagate. When the open row would be deleted but its
    tab is no longer in the document, MalformedSheet is raised before
    anything is written.
    """
    layout = domain.layout

    rule = check_requested(entry.count)
    if not rule.allowed:
        return RowResult(entry, RowOutcome.INVALID_REQUEST, rule.reason)
    rule = check_below_sentinel(entry.row, sentinel_row)
    if not rule.allowed:
        return RowResult(entry, RowOutcome.HEADER_ROW, rule.reason)

    fetched = store.read_range(document_id, row_range(sheet_title, entry.row))
    if not fetched or not any(str(c).strip() for c in fetched[0] if c is not None):
        return RowResult(entry, RowOutcome.ROW_GONE, f"Row {entry.row} no longer exists")
    row = decode_row(fetched[0], layout, entry.row)

    checks = (
        (check_row_open(row), RowOutcome.NOT_OPEN),
        (check_item_matches(row, entry.item), RowOutcome.ITEM_MISMATCH),
        (check_count_valid(row), RowOutcome.INVALID_COUNT),
    )
    for rule, outcome in checks:
        if not rule.allowed:
            log.info("Skipping %s row %d: %s", sheet_title, entry.row, rule.reason)
            return RowResult(entry, outcome, rule.reason)

    available = row.capacity or 0
    rule = check_capacity(available, entry.count)
    if not rule.allowed:
        log.info("Skipping %s row %d: %s", sheet_title, entry.row, rule.reason)
        return RowResult(entry, RowOutcome.INSUFFICIENT, rule.reason)

    stamp = format_signup_timestamp(now or datetime.now().astimezone())
    signee = build_signee(row, domain, entry, caller, stamp)

    if layout.claims_in_place:
        store.update_range(document_id, row_range(sheet_title, entry.row), encode_row(signee, layout))
        log.info("%s claimed %s row %d in %s", caller.email, sheet_title, entry.row, document_id)
        return RowResult(entry, RowOutcome.APPLIED, signee=signee, remaining=0)

    remaining = remaining_after(available, entry.count)
    handle = _sheet_handle(store, document_id, sheet_title) if remaining <= 0 else None

    store.append_row(document_id, sheet_title, encode_row(signee, layout))
    if handle is not None:
        store.delete_rows(document_id, handle, entry.row - 1, entry.row)
    else:
        row.count = remaining
        store.update_range(document_id, row_range(sheet_title, entry.row), encode_row(row, layout))
    log.info(
        "%s signed up for %d x %r on %s (%d left)",
        caller.email, entry.count, row.item, sheet_title, max(remaining, 0),
    )
    return RowResult(
        entry, RowOutcome.APPLIED, signee=signee, remaining=max(remaining, 0), removed=handle is not None
    )


def _load(store: SheetsStore, domain: SignupDomain, document_id: str, sheet_title: str) -> ParsedSheet:
    return parse_sheet(store.read_range(document_id, sheet_range(sheet_title)), domain)


def confirmation_params(
    parsed: ParsedSheet, caller: CallerContext, signees: Sequence[SignupRow]
) -> dict:
    return {
        "name": caller.name,
        "service": parsed.title,
        "description": parsed.description,
        "where": parsed.location,
        "when": parsed.date,
        "items": [
            {
                "index": index,
                "item": s.item,
                "itemCount": s.count,
                "notes": s.notes,
                **s.extras,
            }
            for index, s in enumerate(signees, start=1)
        ],
    }


def submit_signup(
    store: SheetsStore,
    notifier,
    domain: SignupDomain,
    document_id: str,
    sheet_title: str,
    entries: Sequence[SignupEntry],
    caller: CallerContext,
    now: Optional[datetime] = None,
) -> BatchResult:
    """Reconcile a batch of sign-ups against one sheet, then confirm once.

    Entries run one at a time, highest row first, so a row deleted early
    never shifts a row the batch has yet to reach. A later entry naming a
    row this batch already deleted is reported as ROW_GONE unread. There is
    no rollback: if the store fails midway, rows already written stay
    written.

    Raises MalformedSheet when the sheet's header block is broken; nothing
    is written in that case.
    """
    header = _load(store, domain, document_id, sheet_title)
    moment = now or datetime.now().astimezone()

    ordered = sorted(entries, key=lambda e: e.row, reverse=True)
    removed: set[int] = set()
    results: list[RowResult] = []
    for entry in ordered:
        if entry.row in removed:
            # everything below has moved up into this row number
            results.append(
                RowResult(entry, RowOutcome.ROW_GONE, f"Row {entry.row} was removed earlier in this batch")
            )
            continue
        result = reconcile(
            store, domain, document_id, sheet_title, entry, caller, header.sentinel_row, moment
        )
        if result.removed:
            removed.add(entry.row)
        results.append(result)
    batch = BatchResult(results=results)
    if not batch.applied:
        return batch

    try:
        detailed = _load(store, domain, document_id, sheet_title)
    except MalformedSheet:
        detailed = header
    signees = [r.signee for r in reversed(batch.applied)]
    batch.notification = notifier.send_templated_message(
        [caller.email],
        domain.confirmation_template,
        confirmation_params(detailed, caller, signees),
    )
    return batch
