"""
Ledger error taxonomy.

Every failure the core reports carries an ErrorKind plus a human-readable
message. The HTTP layer maps kinds to status codes.
"""

from enum import Enum


class ErrorKind(Enum):
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    CONFLICT = "conflict"
    INTERNAL_FAILURE = "internal_failure"


class LedgerError(Exception):
    """Base class for errors raised by the ledger core"""

    kind: ErrorKind = ErrorKind.INTERNAL_FAILURE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind.value, "detail": self.message}


class InvalidRequestError(LedgerError):
    """Missing or malformed input"""
    kind = ErrorKind.INVALID_REQUEST


class NotFoundError(LedgerError):
    """Referenced bank or transaction does not exist for the tenant"""
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(LedgerError):
    """Record exists but belongs to another tenant"""
    kind = ErrorKind.FORBIDDEN


class InsufficientFundsError(LedgerError):
    """Transfer amount exceeds the source balance"""
    kind = ErrorKind.INSUFFICIENT_FUNDS


class ConflictError(LedgerError):
    """Operation clashes with the canonical bank rules"""
    kind = ErrorKind.CONFLICT


class InternalFailureError(LedgerError):
    """Store unavailable or an atomic commit could not complete"""
    kind = ErrorKind.INTERNAL_FAILURE
