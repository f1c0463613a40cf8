"""Ad-hoc SMS and email sending for admins."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from seva.auth import CallerContext, require_admin

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class SmsRequest(BaseModel):
    recipients: list[str] = Field(..., min_length=1)
    body: str = Field(..., min_length=1)


class EmailRequest(BaseModel):
    recipients: list[str] = Field(..., min_length=1)
    subject: str
    body: str = Field(..., min_length=1)


@router.post("/sms")
def send_sms(body: SmsRequest, request: Request, caller: CallerContext = Depends(require_admin)):
    return request.app.state.notifier.send_sms(body.recipients, body.body)


@router.post("/email")
def send_email(body: EmailRequest, request: Request, caller: CallerContext = Depends(require_admin)):
    return request.app.state.notifier.send_plain_message(body.recipients, body.subject, body.body)
