from .service import AccountService
from .schemas import (
    UserType, TransactionType, UserRecord, AgencyRecord, AccessLevelRecord, Approver
)

__all__ = [
    "AccountService",
    "UserType",
    "TransactionType",
    "UserRecord",
    "AgencyRecord",
    "AccessLevelRecord",
    "Approver",
]
