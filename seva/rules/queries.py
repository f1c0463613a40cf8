"""Read-side queries over discovered sign-up sheets."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterator, Optional

from seva.auth import CallerContext
from seva.errors import MalformedSheet
from seva.models.catalog import SheetSummary, discover
from seva.models.layout import SignupDomain
from seva.models.row import SignupRow
from seva.models.sheet import ParsedSheet, SignupSheetView, parse_sheet, sheet_view
from seva.rules.visibility import filter_signees
from seva.store import SheetsStore, sheet_range

log = logging.getLogger(__name__)


def load_sheet(
    store: SheetsStore, domain: SignupDomain, document_id: str, sheet_title: str
) -> Optional[ParsedSheet]:
    """Fetch and parse one sheet. Returns None if the sheet is malformed."""
    rows = store.read_range(document_id, sheet_range(sheet_title))
    try:
        return parse_sheet(rows, domain)
    except MalformedSheet as exc:
        log.debug("Ignoring %s/%s: %s", document_id, sheet_title, exc)
        return None


def get_detailed_sheet(
    store: SheetsStore,
    domain: SignupDomain,
    document_id: str,
    sheet_title: str,
    caller: CallerContext,
    include_all_signees: bool = False,
) -> Optional[SignupSheetView]:
    """Header, open items and the signees this caller may see."""
    parsed = load_sheet(store, domain, document_id, sheet_title)
    if parsed is None:
        return None
    signees = filter_signees(parsed.signees, caller, caller.is_admin, include_all_signees)
    return sheet_view(parsed, document_id, sheet_title, signees)


def list_upcoming_sheets(
    store: SheetsStore,
    domain: SignupDomain,
    tag: Optional[str] = None,
    today: Optional[date] = None,
) -> list[SignupSheetView]:
    """Upcoming sheets with their open items; signees are never included.

    When ``tag`` is given only sheets tagged with it are returned.
    """
    wanted = (tag or "").strip().lower()
    views: list[SignupSheetView] = []
    for summary in discover(store, domain.keyword, "upcoming", today):
        parsed = load_sheet(store, domain, summary.document_id, summary.sheet_title)
        if parsed is None:
            continue
        if wanted and wanted not in parsed.tags:
            continue
        views.append(sheet_view(parsed, summary.document_id, summary.sheet_title))
    return views


def get_user_signups(
    store: SheetsStore,
    domain: SignupDomain,
    caller: CallerContext,
    today: Optional[date] = None,
) -> list[SignupSheetView]:
    """Upcoming sheets on which the caller can see at least one signee."""
    views: list[SignupSheetView] = []
    for summary in discover(store, domain.keyword, "upcoming", today):
        view = get_detailed_sheet(store, domain, summary.document_id, summary.sheet_title, caller)
        if view is not None and view.signees:
            views.append(view)
    return views


def iter_signees(
    store: SheetsStore,
    domain: SignupDomain,
    caller: CallerContext,
    today: Optional[date] = None,
) -> Iterator[tuple[SheetSummary, ParsedSheet, SignupRow]]:
    """Every visible signee on every dated sheet, past ones included."""
    for summary in discover(store, domain.keyword, "all", today):
        parsed = load_sheet(store, domain, summary.document_id, summary.sheet_title)
        if parsed is None:
            continue
        for signee in filter_signees(parsed.signees, caller, caller.is_admin, True):
            yield summary, parsed, signee
