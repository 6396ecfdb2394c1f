"""
Ledger error taxonomy.

Every failure the core can report is one of these kinds. Each kind carries the HTTP
status it maps to, so the transport layer translates them with a single handler
instead of each route building its own HTTPException.
"""
from typing import Any, Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""
    status_code: int = 500
    kind: str = "ledger_error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(LedgerError):
    """Malformed or missing fields, split sum mismatch."""
    status_code = 400
    kind = "validation_error"


class AuthenticationError(LedgerError):
    """Missing, invalid or expired credential."""
    status_code = 401
    kind = "authentication_error"


class AuthorizationError(LedgerError):
    """Valid caller that is not a member (or owner) of the trip."""
    status_code = 403
    kind = "authorization_error"


class NotFoundError(LedgerError):
    """Trip, expense, settlement or user id does not resolve."""
    status_code = 404
    kind = "not_found"


class ConflictError(LedgerError):
    """Uniqueness violation surfaced to the caller (e.g. duplicate email)."""
    status_code = 409
    kind = "conflict"


class StoreError(LedgerError):
    """Backing store failure."""
    status_code = 500
    kind = "store_error"


class DeliveryError(LedgerError):
    """Notification could not be delivered."""
    status_code = 500
    kind = "delivery_error"
