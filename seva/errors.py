"""Error taxonomy shared by the ledger, the store wrapper and the routes."""

from __future__ import annotations


class MalformedSheet(ValueError):
    """A sheet's header block does not follow the layout convention.

    Read paths drop such sheets from their results instead of failing.
    """


class UpstreamUnavailable(RuntimeError):
    """The document store, identity provider or another remote collaborator failed."""


class Unauthorized(Exception):
    """No credential, or a credential the identity provider rejected."""


class Forbidden(Exception):
    """An authenticated non-admin called an admin-only operation."""
