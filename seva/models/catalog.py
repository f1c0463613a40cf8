"""Sheet discovery: which spreadsheet tabs are sign-up sheets, and when."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal, Optional
from zoneinfo import ZoneInfo

from seva.store import SheetsStore

log = logging.getLogger(__name__)

DATE_IN_TITLE = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class SheetSummary:
    document_id: str
    document_name: str
    sheet_title: str
    sheet_handle: int
    date: date


def local_now(timezone: Optional[str] = None) -> datetime:
    """Aware current time in the configured zone (system local time when unset)."""
    if timezone:
        return datetime.now(ZoneInfo(timezone))
    return datetime.now().astimezone()


def local_today(timezone: Optional[str] = None) -> date:
    return local_now(timezone).date()


def matches_keyword(name: str, keyword: str) -> bool:
    """Case-insensitive containment test ignoring non-alphanumerics ("Sign-Up" matches "signup")."""
    squashed = re.sub(r"[^0-9a-z]", "", (name or "").lower())
    return keyword.lower() in squashed


def title_date(title: str) -> Optional[date]:
    """Return the first YYYY-MM-DD date embedded in a tab title, if any."""
    match = DATE_IN_TITLE.search(title or "")
    if match is None:
        return None
    try:
        return date.fromisoformat(match.group(0))
    except ValueError:
        return None


def discover(
    store: SheetsStore,
    keyword: str,
    mode: Literal["upcoming", "all"] = "upcoming",
    today: Optional[date] = None,
) -> list[SheetSummary]:
    """List dated tabs of keyword-named spreadsheets, oldest first.

    In "upcoming" mode, tabs dated before ``today`` are left out.
    """
    today = today or local_today()
    summaries: list[SheetSummary] = []
    for document in store.list_documents():
        if not matches_keyword(document.name, keyword):
            continue
        for sheet in store.get_sheet_metadata(document.id):
            sheet_date = title_date(sheet.title)
            if sheet_date is None:
                log.debug("Skipping tab %r in %s: no date in title", sheet.title, document.name)
                continue
            if mode == "upcoming" and sheet_date < today:
                continue
            summaries.append(
                SheetSummary(
                    document_id=document.id,
                    document_name=document.name,
                    sheet_title=sheet.title,
                    sheet_handle=sheet.handle,
                    date=sheet_date,
                )
            )
    summaries.sort(key=lambda s: s.date)
    return summaries
