"""
Booking Approval Module

Users whose access level requires approval must present an approved token
before booking. This module includes:

- tokens.py: encrypted approval tokens (libsodium secretbox)
- resolution.py: classifies a requester and finds the users who may approve
- service.py: the approval gate and approval request dispatch
- router.py: request, approve and reject endpoints
"""

from .service import ApprovalService
from .tokens import ApprovalTokenCodec
from .schemas import ApprovalStatus, ApprovalRecord, ApprovalDispatchResult

__all__ = [
    "ApprovalService",
    "ApprovalTokenCodec",
    "ApprovalStatus",
    "ApprovalRecord",
    "ApprovalDispatchResult",
]
