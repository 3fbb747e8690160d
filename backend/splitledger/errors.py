"""
Ledger error taxonomy.

Every failure raised by the services carries a stable ``code``, the HTTP
status the API layer renders it with, and enough context (field, expected vs.
actual) to reproduce the condition in a test.
"""
from typing import Any, Dict, Optional


class ErrorCode:
    """Error code constants."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_SPLIT = "INVALID_SPLIT"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    ALREADY_SETTLED = "ALREADY_SETTLED"
    CONFLICT = "CONFLICT"

    # Membership gate
    NOT_MEMBER = "NOT_MEMBER"
    PAYER_NOT_MEMBER = "PAYER_NOT_MEMBER"
    PARTICIPANTS_NOT_MEMBERS = "PARTICIPANTS_NOT_MEMBERS"
    PAYER_NOT_FRIEND = "PAYER_NOT_FRIEND"
    PARTICIPANT_NOT_ELIGIBLE = "PARTICIPANT_NOT_ELIGIBLE"


class LedgerError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.field = field
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"success": False, "message": self.message, "code": self.code}
        if self.field:
            body["field"] = self.field
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(LedgerError):
    status_code = 400
    default_code = ErrorCode.VALIDATION_ERROR


class InvalidSplit(ValidationError):
    default_code = ErrorCode.INVALID_SPLIT

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("field", "splitWith")
        super().__init__(message, **kwargs)


class AuthError(LedgerError):
    """Split participants are not allowed by group membership or friendship."""
    status_code = 403
    default_code = ErrorCode.NOT_MEMBER


class NotFound(LedgerError):
    status_code = 404
    default_code = ErrorCode.NOT_FOUND


class Forbidden(LedgerError):
    status_code = 403
    default_code = ErrorCode.FORBIDDEN


class AlreadySettled(LedgerError):
    status_code = 400
    default_code = ErrorCode.ALREADY_SETTLED


class ConflictError(LedgerError):
    """A concurrent writer kept winning the compare-and-swap."""
    status_code = 409
    default_code = ErrorCode.CONFLICT
