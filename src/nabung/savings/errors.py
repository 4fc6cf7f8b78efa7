"""Ledger error taxonomy.

Each class also derives from the builtin that describes it, so callers that
only care about the broad category can catch ValueError / LookupError /
PermissionError.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for savings ledger failures."""


class InvalidAmountError(LedgerError, ValueError):
    """Monetary input is non-positive, non-finite or unparsable."""


class TargetNotFoundError(LedgerError, LookupError):
    """No savings target exists with the requested id."""


class AccessDeniedError(LedgerError, PermissionError):
    """The savings target belongs to a different user."""


class StorageFailureError(LedgerError):
    """The database failed while committing a ledger mutation."""
