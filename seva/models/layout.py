"""Column layouts and the sign-up domains that use them.

Every sign-up domain stores its rows in the same kind of sheet: a block of
labelled header rows, a ``#`` sentinel row, then one row per open item or
completed sign-up. Domains differ only in which column holds which field
and in how a sign-up is recorded, so both are described here as data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


# ---------------------------------------------------------------------------
# Layout descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnLayout:
    """Zero-based column index of every field in a sign-up row.

    A layout without a ``count`` column gives each open row an implicit
    capacity of one, and sign-ups claim that row in place instead of
    appending a new signee row.
    """

    item: int
    name: int
    phone: int
    email: int
    notes: int
    signed_up_on: int
    quantity: Optional[int] = None
    count: Optional[int] = None
    extras: dict[str, int] = field(default_factory=dict)

    @property
    def claims_in_place(self) -> bool:
        return self.count is None

    @property
    def width(self) -> int:
        indices = [self.item, self.name, self.phone, self.email, self.notes, self.signed_up_on]
        indices += [i for i in (self.quantity, self.count) if i is not None]
        indices += list(self.extras.values())
        return max(indices) + 1


@dataclass(frozen=True)
class SignupDomain:
    name: str
    keyword: str  # spreadsheet names must contain this to be discovered
    layout: ColumnLayout
    required_headers: tuple[str, ...]
    confirmation_template: str
    editable_fields: tuple[str, ...] = ()  # caller-supplied values written into the signee row


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------

SERVICE_LAYOUT = ColumnLayout(
    signed_up_on=0,
    item=1,
    quantity=2,
    count=3,
    name=4,
    phone=5,
    email=6,
    notes=7,
)

DEVOTION_LAYOUT = ColumnLayout(
    item=1,  # signup type, e.g. "Bhajan" or "Thought for the day"
    name=2,
    extras={"bhajan_or_tfd": 3, "scale": 4},
    email=7,
    phone=8,
    notes=9,
    signed_up_on=10,
)

BIRTHDAY_LAYOUT = ColumnLayout(
    signed_up_on=0,
    item=1,  # hosting date
    name=2,
    phone=3,
    email=4,
    extras={"address": 5},
    notes=6,  # instructions for attendees
)

SERVICE = SignupDomain(
    name="service",
    keyword="signup",
    layout=SERVICE_LAYOUT,
    required_headers=("date", "location", "title", "description"),
    confirmation_template="ServiceSignupConfirmation",
)

DEVOTION = SignupDomain(
    name="devotion",
    keyword="bhajan",
    layout=DEVOTION_LAYOUT,
    required_headers=("date", "location", "description"),
    confirmation_template="DevotionSignupConfirmation",
    editable_fields=("bhajan_or_tfd", "scale", "notes"),
)

BIRTHDAY = SignupDomain(
    name="birthday",
    keyword="birthday",
    layout=BIRTHDAY_LAYOUT,
    required_headers=("date", "location", "description"),
    confirmation_template="BirthdayHomeBhajanSignupConfirmation",
    editable_fields=("address", "notes"),
)

DOMAINS: dict[str, SignupDomain] = {d.name: d for d in (SERVICE, DEVOTION, BIRTHDAY)}


def get_domain(name: str) -> Optional[SignupDomain]:
    """Look up a domain by name (case-insensitive). Returns None if unknown."""
    return DOMAINS.get((name or "").strip().lower())
