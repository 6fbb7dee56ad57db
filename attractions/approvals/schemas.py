from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from enum import IntEnum

from attractions.accounts.schemas import Approver

class ApprovalStatus(IntEnum):
    """Approval request status"""
    PENDING = 0
    APPROVED = 1
    REJECTED = 2

class ApprovalRecord(BaseModel):
    """Stored booking approval request"""
    model_config = ConfigDict(extra="allow")

    id: str
    status: int = ApprovalStatus.PENDING
    applicant_id: Optional[str] = None
    timestamp: Optional[str] = None
    approved_by: Optional[str] = None
    rejected_by: Optional[str] = None
    decided_at: Optional[str] = None
    approvers: List[str] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_approved(self) -> bool:
        return self.status == ApprovalStatus.APPROVED

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING

    @property
    def applicant(self) -> Optional[str]:
        return self.applicant_id or self.meta.get("applicant_id")

class ApprovalDispatchResult(BaseModel):
    """Outcome of sending an approval request to approvers"""
    status: bool
    request_id: Optional[str] = None
    approval_token: Optional[str] = None
    approvers: List[Approver] = Field(default_factory=list)
    data: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def approval_link_sent(self) -> bool:
        return any(item.get("status") for item in self.data)
