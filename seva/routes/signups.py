"""Sign-up sheet route handlers, shared by every sign-up domain."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import BaseModel, Field

from seva.auth import CallerContext, require_admin, require_caller
from seva.errors import MalformedSheet
from seva.export import render_csv
from seva.models.catalog import local_now, local_today
from seva.models.layout import SignupDomain, get_domain
from seva.models.sheet import SigneeView, SignupSheetView, signee_view
from seva.rules.queries import (
    get_detailed_sheet,
    get_user_signups,
    iter_signees,
    list_upcoming_sheets,
)
from seva.rules.reconciler import SignupEntry, submit_signup
from seva.store import SheetsStore

router = APIRouter(prefix="/api", tags=["signups"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def _get_store(request: Request) -> SheetsStore:
    return request.app.state.store


def _get_domain(domain: str) -> SignupDomain:
    found = get_domain(domain)
    if found is None:
        raise HTTPException(status_code=404, detail=f"Unknown signup domain: {domain}")
    return found


def _today(request: Request):
    return local_today(request.app.state.settings.timezone)


def _now(request: Request):
    return local_now(request.app.state.settings.timezone)


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------

class SignupItemRequest(BaseModel):
    row: int = Field(..., ge=1)
    count: int = Field(default=1, ge=1)
    item: Optional[str] = None
    fields: dict[str, str] = Field(default_factory=dict)


class SignupRequest(BaseModel):
    items: list[SignupItemRequest] = Field(..., min_length=1)


class RowOutcomeOut(BaseModel):
    row: int
    count: int
    outcome: str
    reason: str
    signee: Optional[SigneeView] = None
    remaining: Optional[int] = None


class SignupResponse(BaseModel):
    applied: int
    results: list[RowOutcomeOut]
    notified: bool


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/{domain}/sheets", response_model=list[SignupSheetView])
def list_sheets(
    request: Request,
    domain: SignupDomain = Depends(_get_domain),
    tag: Optional[str] = Query(default=None),
    caller: CallerContext = Depends(require_caller),
    store: SheetsStore = Depends(_get_store),
):
    """Upcoming sheets with their open items, optionally filtered by tag."""
    return list_upcoming_sheets(store, domain, tag=tag, today=_today(request))


@router.get("/{domain}/mine", response_model=list[SignupSheetView])
def my_signups(
    request: Request,
    domain: SignupDomain = Depends(_get_domain),
    caller: CallerContext = Depends(require_caller),
    store: SheetsStore = Depends(_get_store),
):
    return get_user_signups(store, domain, caller, today=_today(request))


@router.get("/{domain}/export")
def export_signups(
    request: Request,
    domain: SignupDomain = Depends(_get_domain),
    caller: CallerContext = Depends(require_admin),
    store: SheetsStore = Depends(_get_store),
):
    """Every sign-up on every dated sheet as CSV (admins only)."""
    body = render_csv(iter_signees(store, domain, caller, today=_today(request)))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{domain.name}-signups.csv"'},
    )


@router.get("/{domain}/sheets/{document_id}/{sheet_title}", response_model=SignupSheetView)
def get_sheet(
    document_id: str,
    sheet_title: str,
    domain: SignupDomain = Depends(_get_domain),
    include_all: bool = Query(default=False, alias="all", description="Admins: include every signee"),
    caller: CallerContext = Depends(require_caller),
    store: SheetsStore = Depends(_get_store),
):
    view = get_detailed_sheet(store, domain, document_id, sheet_title, caller, include_all_signees=include_all)
    if view is None:
        raise HTTPException(status_code=404, detail="Signup sheet not found")
    return view


@router.post("/{domain}/sheets/{document_id}/{sheet_title}/signups", response_model=SignupResponse)
def post_signup(
    document_id: str,
    sheet_title: str,
    body: SignupRequest,
    request: Request,
    domain: SignupDomain = Depends(_get_domain),
    caller: CallerContext = Depends(require_caller),
    store: SheetsStore = Depends(_get_store),
):
    """Sign the caller up for one or more rows of a sheet.

    Rows that are gone, full or changed are skipped and reported in the
    per-row results; the request itself still succeeds.
    """
    entries = [
        SignupEntry(row=i.row, count=i.count, item=i.item, fields=dict(i.fields))
        for i in body.items
    ]
    try:
        batch = submit_signup(
            store,
            request.app.state.notifier,
            domain,
            document_id,
            sheet_title,
            entries,
            caller,
            now=_now(request),
        )
    except MalformedSheet:
        raise HTTPException(status_code=404, detail="Signup sheet not found")

    return SignupResponse(
        applied=len(batch.applied),
        notified=bool(batch.notification and batch.notification.get("success")),
        results=[
            RowOutcomeOut(
                row=r.entry.row,
                count=r.entry.count,
                outcome=r.outcome.value,
                reason=r.reason,
                signee=signee_view(r.signee) if r.signee is not None else None,
                remaining=r.remaining,
            )
            for r in batch.results
        ],
    )
