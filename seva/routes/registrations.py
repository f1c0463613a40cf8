"""Registration search and save routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from seva.auth import CallerContext, require_caller
from seva.models.registration import save_registrations, search_registrations

router = APIRouter(prefix="/api/registrations", tags=["registrations"])


def _registration_sheet(request: Request) -> tuple[str, str]:
    settings = request.app.state.settings
    if not settings.registration_document_id:
        raise HTTPException(status_code=503, detail="Registration sheet is not configured")
    return settings.registration_document_id, settings.registration_sheet_title


@router.get("")
def search(
    request: Request,
    q: Optional[str] = Query(default=None),
    caller: CallerContext = Depends(require_caller),
):
    """Search registrations; contact columns are blanked in the results."""
    document_id, sheet_title = _registration_sheet(request)
    return search_registrations(request.app.state.store, document_id, sheet_title, q or "")


@router.post("")
def save(
    registrations: list[list[str]],
    request: Request,
    caller: CallerContext = Depends(require_caller),
):
    document_id, sheet_title = _registration_sheet(request)
    try:
        written = save_registrations(request.app.state.store, document_id, sheet_title, registrations)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"saved": written}
