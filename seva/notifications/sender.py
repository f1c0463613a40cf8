import logging
import re
from typing import Optional, Sequence
from urllib.parse import urlparse, urlunparse

import httpx

log = logging.getLogger(__name__)


def _normalized_service_url(raw: Optional[str], default_url: str) -> str:
    """Normalize an env-provided service URL into a valid base URL.

    Handles common configuration slips:
    - missing protocol (e.g. notifier.internal:3000)
    - dangling colon (e.g. http://notifier.internal:)
    - trailing slash
    """
    value = (raw or "").strip().strip('"').strip("'")
    if not value:
        return default_url

    if "://" not in value:
        value = f"http://{value}"

    parsed = urlparse(value)
    if not parsed.hostname:
        return default_url

    try:
        port = parsed.port
    except ValueError:
        port = None

    netloc = parsed.hostname if port is None else f"{parsed.hostname}:{port}"
    path = (parsed.path or "").rstrip("/")
    return urlunparse((parsed.scheme or "http", netloc, path, "", "", ""))


def _digits_only(phone: str) -> str:
    return "".join(ch for ch in phone if ch.isdigit())


def normalize_phone(phone: str, default_country: str = "1") -> str:
    """Normalize a phone number to E.164 where it is unambiguous.

    - '+' prefixed values keep their digits.
    - 10-digit local numbers get the default country code.
    - 11-digit numbers already starting with the country code get a '+'.
    """
    raw = (phone or "").strip()
    digits = _digits_only(raw)
    if not digits:
        return raw

    if raw.startswith("+"):
        return f"+{digits}"

    country = _digits_only(default_country) or "1"
    if len(digits) == 10 and digits[0] in "23456789":
        return f"+{country}{digits}"
    if len(digits) == 11 and digits.startswith(country):
        return f"+{digits}"
    if len(digits) > 11:
        return f"+{digits}"
    return digits


def _recipients(values: Sequence[str]) -> list[str]:
    return [v.strip() for v in values if v and v.strip()]


class Notifier:
    """Sends email and SMS through the messaging bridge.

    Delivery is best-effort: failures are logged and reported in the
    returned dict, never raised.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 30, default_country: str = "1"):
        self.base_url = _normalized_service_url(base_url, default_url="http://localhost:3000")
        self.timeout = timeout
        self.default_country = default_country

    def _post(self, path: str, payload: dict) -> dict:
        endpoint = f"{self.base_url}{path}"
        if not payload.get("to"):
            return {"success": False, "error": "No recipients"}
        try:
            response = httpx.post(endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except (httpx.RequestError, httpx.HTTPStatusError) as e:
            log.warning("Notification to %s via %s failed: %s", payload["to"], endpoint, e)
            return {"success": False, "error": str(e)}
        log.info("Notification sent via %s to %s", path, payload["to"])
        return {"success": True, "error": None}

    def send_templated_message(self, recipients: Sequence[str], template_name: str, params: dict) -> dict:
        return self._post(
            "/email/template",
            {"to": _recipients(recipients), "template": template_name, "params": params},
        )

    def send_plain_message(self, recipients: Sequence[str], subject: str, body: str) -> dict:
        return self._post(
            "/email",
            {"to": _recipients(recipients), "subject": subject, "body": body},
        )

    def send_sms(self, recipients: Sequence[str], body: str) -> dict:
        phones = [normalize_phone(p, self.default_country) for p in _recipients(recipients)]
        return self._post("/sms", {"to": phones, "body": body})
