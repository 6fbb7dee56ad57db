"""
Booking approval gate.

Decides whether a booking needs an approved token, validates tokens against
stored approval requests, and creates new approval requests by notifying the
requester's approvers.
"""

import hashlib
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from attractions.accounts.schemas import APPROVAL_REQUIRED_MAX, TransactionType, UserRecord, UserType
from attractions.accounts.service import AccountService
from attractions.approvals.resolution import ApproverResolver
from attractions.approvals.schemas import ApprovalDispatchResult, ApprovalRecord, ApprovalStatus
from attractions.approvals.tokens import ApprovalTokenCodec
from attractions.cache import TTLCache
from attractions.config import settings
from attractions.exceptions import (
    ApprovalInvalid, ApprovalNotYetApproved, ApprovalRequired, AttractionsError
)
from attractions.notifications.email import EmailService
from attractions.notifications.templates import (
    APPROVAL_REQUEST_EMAIL, build_details_table, render
)
from attractions.store import Collections, DocumentStore

logger = logging.getLogger(__name__)

CACHE_PREFIX = "booking_approval_request_"


class ApprovalService:
    """Service for the booking approval workflow"""

    def __init__(
        self,
        store: DocumentStore,
        accounts: AccountService,
        codec: ApprovalTokenCodec,
        email: EmailService,
        cache: TTLCache,
        link_base_url: Optional[str] = None,
        cache_minutes: Optional[int] = None,
    ):
        self.store = store
        self.accounts = accounts
        self.codec = codec
        self.email = email
        self.cache = cache
        self.resolver = ApproverResolver(accounts)
        self.link_base_url = (link_base_url or settings.APPROVAL_LINK_BASE_URL).rstrip("/")
        self.cache_ttl = (cache_minutes or settings.APPROVAL_CACHE_MINUTES) * 60

    # Gate
    async def is_approval_required(self, transaction_type: TransactionType, user: UserRecord) -> bool:
        """Check if ticket approval is required for this transaction type and user"""
        if user.type in (UserType.AGENT.value, UserType.MASTERAGENT.value):
            return False

        access_level = await self.accounts.get_access_level(user.access_level)
        if not access_level:
            # No access level means no restriction
            logger.warning(
                "No access level found for user %s (access_level=%s); approval not required",
                user.id, user.access_level,
            )
            return False

        value = access_level.value_for(transaction_type)
        return value is not None and value <= APPROVAL_REQUIRED_MAX

    async def validate_approval_token(
        self,
        transaction_type: TransactionType,
        token: Optional[str],
        user: UserRecord,
    ) -> Optional[ApprovalRecord]:
        """Raise unless the user may book without a token or holds an approved one"""
        if not token:
            if await self.is_approval_required(transaction_type, user):
                raise ApprovalRequired(
                    "Approval ID is required for users with access control where ticket approval is required"
                )
            return None

        request_id = self.codec.resolve(token)
        if not request_id:
            raise ApprovalInvalid("Approval ID is not valid")

        record = await self.get_request(request_id)
        if not record:
            raise ApprovalInvalid("Approval ID is not valid")

        if record.applicant and record.applicant != user.id:
            logger.warning("User %s presented approval %s issued to %s", user.id, request_id, record.applicant)
            raise ApprovalInvalid("Unauthorized booking approval")

        if not record.is_approved:
            raise ApprovalNotYetApproved("Approval ID is not approved yet")

        return record

    # Requests
    async def get_request(self, request_id: str) -> Optional[ApprovalRecord]:
        cached = self.cache.get(CACHE_PREFIX + request_id)
        if cached and cached.is_approved:
            return cached

        data = await self.store.get(Collections.BOOKING_APPROVALS, request_id)
        if not data:
            return None

        record = ApprovalRecord(**data)
        self.cache.set(CACHE_PREFIX + request_id, record, self.cache_ttl)
        return record

    async def create_approval_request(
        self,
        requester: UserRecord,
        cost: str,
        request_details: Dict[str, Any],
        transaction_type: TransactionType = TransactionType.ATTRACTIONS,
        request_id: Optional[str] = None,
        host: Optional[str] = None,
    ) -> ApprovalDispatchResult:
        """Persist a pending approval request and email every approver a decision link"""
        request_id = request_id or uuid.uuid4().hex

        try:
            approvers = await self.resolver.resolve(requester, transaction_type)
        except AttractionsError as e:
            logger.error("Could not resolve approvers for %s: %s", requester.id, e.message)
            return ApprovalDispatchResult(status=False, request_id=request_id, error=e.message)

        if not approvers:
            return ApprovalDispatchResult(
                status=False, request_id=request_id, error="No approvers found for this user"
            )

        details: Dict[str, Any] = {
            "applicant_name": requester.full_name,
            "applicant_id": requester.id,
            "amount_requested": cost,
            "request_id": request_id,
            "details_table": build_details_table(request_details),
        }
        details.update(await self.accounts.get_parent_company_details(requester))

        record = ApprovalRecord(
            id=request_id,
            status=int(ApprovalStatus.PENDING),
            applicant_id=requester.id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            approvers=[a.id for a in approvers],
            meta={k: v for k, v in details.items() if k != "details_table"} | {"request": request_details},
        )
        await self.store.set(Collections.BOOKING_APPROVALS, request_id, record.model_dump())
        self.cache.set(CACHE_PREFIX + request_id, record, self.cache_ttl)

        sender, from_name = await self._sender_for_host(host)
        results = []
        for approver in approvers:
            approver_token = self.codec.hash(f"{approver.id}|{request_id}")
            values = dict(details)
            values.update({
                "approval_link": f"{self.link_base_url}/approve_booking_request?hash={approver_token}",
                "reject_link": f"{self.link_base_url}/reject_booking_request?hash={approver_token}",
                "approver_name": approver.name,
            })

            if not approver.email:
                results.append({"status": 0, "notice": "Approver has no email address", "recipient": approver.id})
                continue

            result = await self.email.send_email(
                html_body=render(APPROVAL_REQUEST_EMAIL, values),
                recipient_emails=[approver.email],
                subject="Booking Approval Request",
                sender_email=sender,
                from_name=from_name,
            )
            results.append(result)

        logger.info(
            "Approval request %s for %s sent to %d approver(s), %d delivered",
            request_id, requester.id, len(approvers), sum(1 for r in results if r.get("status")),
        )
        return ApprovalDispatchResult(
            status=len(results) > 0,
            request_id=request_id,
            approval_token=self.codec.hash(request_id),
            approvers=approvers,
            data=results,
        )

    # Decisions
    async def approve(self, approver_token: str) -> ApprovalRecord:
        return await self._decide(approver_token, ApprovalStatus.APPROVED)

    async def reject(self, approver_token: str) -> ApprovalRecord:
        return await self._decide(approver_token, ApprovalStatus.REJECTED)

    async def _decide(self, approver_token: str, decision: ApprovalStatus) -> ApprovalRecord:
        approver_id, request_id = self._parse_approver_token(approver_token)

        data = await self.store.get(Collections.BOOKING_APPROVALS, request_id)
        if not data:
            raise ApprovalInvalid("Booking approval request not found")
        record = ApprovalRecord(**data)

        if record.approvers and approver_id not in record.approvers:
            raise ApprovalInvalid("You are not an approver for this booking request")

        if not record.is_pending:
            logger.info("Approval request %s already decided (status %s)", request_id, record.status)
            return record

        changes = {
            "status": int(decision),
            "decided_at": datetime.now(timezone.utc).isoformat(),
        }
        if decision == ApprovalStatus.APPROVED:
            changes["approved_by"] = approver_id
        else:
            changes["rejected_by"] = approver_id

        updated = await self.store.update(Collections.BOOKING_APPROVALS, request_id, changes)
        record = ApprovalRecord(**updated)
        self.cache.set(CACHE_PREFIX + request_id, record, self.cache_ttl)
        logger.info("Approval request %s set to %s by %s", request_id, decision.name, approver_id)
        return record

    def _parse_approver_token(self, token: str) -> Tuple[str, str]:
        value = self.codec.resolve(token)
        if not value or "|" not in value:
            raise ApprovalInvalid("Invalid hash")
        approver_id, _, request_id = value.rpartition("|")
        if not approver_id or not request_id:
            raise ApprovalInvalid("Invalid hash")
        return approver_id, request_id

    async def _sender_for_host(self, host: Optional[str]) -> Tuple[str, str]:
        """Support address and brand, overridden by a verified whitelabel config"""
        sender, from_name = settings.SUPPORT_EMAIL, settings.SUPPORT_FROM_NAME
        if not host:
            return sender, from_name

        host_hash = hashlib.md5(host.encode("utf-8")).hexdigest()
        config = await self.store.get(Collections.WHITELABEL_CONFIGS, host_hash)
        if config and config.get("support_email_verified") and config.get("support_email"):
            return config["support_email"], config.get("brand") or from_name
        return sender, from_name
