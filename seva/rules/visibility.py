"""Which signee rows a caller may see."""

from __future__ import annotations

from typing import Iterable

from seva.auth import CallerContext
from seva.models.row import SignupRow


def can_see(row: SignupRow, caller: CallerContext, is_admin: bool, include_all: bool = False) -> bool:
    """Admins see every signee; everyone else only rows carrying their own email.

    ``include_all`` is an admin override and changes nothing for non-admins.
    Rows without a signer are open capacity and always visible.
    """
    if not row.has_signer:
        return True
    if is_admin:
        return True
    return bool(caller.email) and row.email == caller.email


def filter_signees(
    rows: Iterable[SignupRow],
    caller: CallerContext,
    is_admin: bool,
    include_all: bool = False,
) -> list[SignupRow]:
    return [r for r in rows if can_see(r, caller, is_admin, include_all)]
