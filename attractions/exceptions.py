"""
Error taxonomy for the attractions API.

Every error carries the HTTP status it maps to; the handlers in
``attractions.main`` turn them into the ``{success, message, data}`` envelope.
"""

from typing import Any, Dict, Optional

from fastapi import status


class AttractionsError(Exception):
    """Base class for errors surfaced through the response envelope"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}


# Input validation
class InvalidRequest(AttractionsError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_REQUEST"


class InvalidBookingRequest(InvalidRequest):
    error_code = "INVALID_BOOKING_REQUEST"


# Authentication / authorization
class Unauthenticated(AttractionsError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHENTICATED"


class ApprovalRequired(AttractionsError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "APPROVAL_REQUIRED"


class ApprovalInvalid(AttractionsError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "APPROVAL_INVALID"


class ApprovalNotYetApproved(AttractionsError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "APPROVAL_NOT_YET_APPROVED"


class Forbidden(AttractionsError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class NoApproversFound(Forbidden):
    error_code = "NO_APPROVERS"


class UserNotFound(AttractionsError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "USER_NOT_FOUND"


# Balance
class InsufficientBalance(AttractionsError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    error_code = "INSUFFICIENT_BALANCE"


class InsufficientBalanceAfterHolds(InsufficientBalance):
    error_code = "INSUFFICIENT_BALANCE_AFTER_HOLDS"


class BalanceLookupFailure(AttractionsError):
    error_code = "BALANCE_LOOKUP_FAILURE"


class BalanceConflict(AttractionsError):
    """A wallet balance kept changing while being adjusted"""
    status_code = status.HTTP_409_CONFLICT
    error_code = "BALANCE_CONFLICT"


# Vendor
class VendorError(AttractionsError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "VENDOR_ERROR"


class AuthenticationFailure(VendorError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "VENDOR_AUTHENTICATION_FAILURE"


class VendorBookingFailed(VendorError):
    """The vendor booking call did not confirm.

    The vendor may still have created the booking; callers must not retry
    blindly.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "VENDOR_BOOKING_FAILED"
    outcome_ambiguous = True


class LedgerCommitFailed(AttractionsError):
    """The vendor booking succeeded but the ledger entry was not written"""
    error_code = "LEDGER_COMMIT_FAILED"


# Best-effort collaborators
class CurrencyConversionError(AttractionsError):
    error_code = "CURRENCY_CONVERSION_FAILED"


class NotificationError(AttractionsError):
    error_code = "NOTIFICATION_FAILED"
