"""Process-wide settings, read once from the environment at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional


def _split_csv(raw: Optional[str]) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    service_account_file: str = "secrets/gsheets.json"
    service_account_json: Optional[str] = None
    firebase_project_id: Optional[str] = None
    admin_emails: frozenset[str] = field(default_factory=frozenset)
    notifier_url: str = "http://localhost:3000"
    notifier_timeout: float = 30.0
    registration_document_id: Optional[str] = None
    registration_sheet_title: str = "Registration"
    timezone: Optional[str] = None
    cors_origins: tuple[str, ...] = ("*",)
    default_country_code: str = "1"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            service_account_file=os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE", "secrets/gsheets.json"),
            service_account_json=os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON") or None,
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
            admin_emails=frozenset(e.lower() for e in _split_csv(os.getenv("ADMIN_EMAILS"))),
            notifier_url=os.getenv("NOTIFIER_URL", "http://localhost:3000"),
            notifier_timeout=float(os.getenv("NOTIFIER_TIMEOUT", "30")),
            registration_document_id=os.getenv("REGISTRATION_DOCUMENT_ID") or None,
            registration_sheet_title=os.getenv("REGISTRATION_SHEET_TITLE", "Registration"),
            timezone=os.getenv("SIGNUP_TIMEZONE") or None,
            cors_origins=tuple(_split_csv(os.getenv("CORS_ORIGINS"))) or ("*",),
            default_country_code=os.getenv("DEFAULT_COUNTRY_CODE", "1"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
