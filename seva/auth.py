from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

import google.auth.transport.requests
from fastapi import Depends, Request
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import id_token

from seva.errors import Forbidden, Unauthorized

log = logging.getLogger(__name__)


@dataclass
class CallerContext:
    uid: str
    email: str
    phone_number: str
    name: str
    is_admin: bool = False


def is_admin_email(email: str, admin_emails: frozenset[str]) -> bool:
    return bool(email) and email.strip().lower() in admin_emails


FIREBASE_ISSUER = "https://securetoken.google.com/"


class FirebaseIdentityProvider:
    """Resolves Firebase ID tokens to callers using Google's public certificates.

    Every Firebase project's tokens are signed with the same keys, so a
    token is only accepted when both its audience and its issuer name
    this project.
    """

    def __init__(self, project_id: Optional[str]):
        if not project_id:
            raise ValueError("FIREBASE_PROJECT_ID must be set to verify bearer tokens")
        self.project_id = project_id
        self.issuer = FIREBASE_ISSUER + project_id
        self._request = google.auth.transport.requests.Request()

    def resolve(self, token: str) -> CallerContext:
        try:
            claims = id_token.verify_firebase_token(token, self._request, audience=self.project_id)
        except (ValueError, GoogleAuthError) as exc:
            log.warning("Rejected bearer credential: %s", exc)
            raise Unauthorized("Invalid bearer token") from exc
        if not claims:
            raise Unauthorized("Invalid bearer token")
        if claims.get("aud") != self.project_id or claims.get("iss") != self.issuer:
            log.warning("Rejected bearer credential issued by %r", claims.get("iss"))
            raise Unauthorized("Invalid bearer token")
        return CallerContext(
            uid=claims.get("user_id") or claims.get("sub", ""),
            email=claims.get("email", ""),
            phone_number=claims.get("phone_number", ""),
            name=claims.get("name", ""),
        )


def extract_bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Pull the credential from ``Authorization: Bearer <t>`` or the legacy ``bearer: firebase <t>``."""
    authorization = (headers.get("authorization") or "").strip()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()

    legacy = (headers.get("bearer") or "").strip()
    if legacy.startswith("firebase"):
        token = legacy[len("firebase"):].strip()
        return token or None
    return None


def get_caller_context(identity, token: Optional[str], admin_emails: frozenset[str]) -> CallerContext:
    """Resolve a raw credential to a caller and stamp the admin flag.

    Raises Unauthorized when the credential is missing or rejected.
    """
    if not token:
        raise Unauthorized("No bearer token present")
    caller = identity.resolve(token)
    caller.is_admin = is_admin_email(caller.email, admin_emails)
    return caller


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

def require_caller(request: Request) -> CallerContext:
    state = request.app.state
    return get_caller_context(
        state.identity,
        extract_bearer_token(request.headers),
        state.settings.admin_emails,
    )


def require_admin(caller: CallerContext = Depends(require_caller)) -> CallerContext:
    if not caller.is_admin:
        raise Forbidden("Admin access required")
    return caller
