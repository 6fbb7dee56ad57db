"""
Approver resolution.

``classify`` is a pure function that decides *who* a requester escalates to;
``ApproverResolver`` performs the lookups for the chosen strategy.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from attractions.accounts.schemas import (
    APPROVER_ACCESS, ACCESS_CATEGORY, Approver, TransactionType, UserRecord, UserType
)
from attractions.accounts.service import AccountService
from attractions.exceptions import AttractionsError

logger = logging.getLogger(__name__)

# Creator id stamped on access levels defined by platform admins
ADMIN_CREATOR = "admin_user"


@dataclass(frozen=True)
class SuperAdminEscalation:
    """Platform staff: every super-admin and accounting user approves"""
    delegated_creator: str = ADMIN_CREATOR


@dataclass(frozen=True)
class MasterAgentEscalation:
    """Partner staff: the agency's master agent approves"""
    agency_id: str


@dataclass(frozen=True)
class ParentCompanyEscalation:
    """Company staff: the parent company account approves"""
    parent_id: Optional[str]


@dataclass(frozen=True)
class DelegatedApproverLookup:
    """Only users holding approval rights under ``creator_id`` approve"""
    creator_id: str


@dataclass(frozen=True)
class NoEscalation:
    pass


Escalation = Union[
    SuperAdminEscalation, MasterAgentEscalation, ParentCompanyEscalation,
    DelegatedApproverLookup, NoEscalation,
]


def classify(user: UserRecord) -> Escalation:
    """Pick the escalation strategy for a requester"""
    if user.type == UserType.SUBAGENT.value:
        if user.has_admin_marker:
            return SuperAdminEscalation()
        if user.id == user.agency_id:
            return MasterAgentEscalation(agency_id=user.agency_id)
        return ParentCompanyEscalation(parent_id=user.parent_id)

    if user.type == UserType.AGENT.value:
        return DelegatedApproverLookup(creator_id=user.id)

    return NoEscalation()


def _as_approver(user: UserRecord) -> Approver:
    return Approver(id=user.id, name=user.full_name, email=user.email)


class ApproverResolver:
    """Resolves the approvers for a requester and transaction category"""

    def __init__(self, accounts: AccountService):
        self.accounts = accounts

    async def resolve(self, user: UserRecord, transaction_type: TransactionType) -> List[Approver]:
        escalation = classify(user)
        approvers: List[Approver] = []
        creator_id: Optional[str] = None

        if isinstance(escalation, SuperAdminEscalation):
            staff = await self.accounts.get_users_by_type(UserType.SUPERADMIN)
            staff += await self.accounts.get_users_by_type(UserType.ACCOUNTING)
            approvers.extend(_as_approver(u) for u in staff)
            creator_id = escalation.delegated_creator

        elif isinstance(escalation, MasterAgentEscalation):
            agency = await self.accounts.get_agency(escalation.agency_id)
            if not agency:
                raise AttractionsError("Agency data not found")
            master_agent = await self.accounts.get_user(agency.masteragent_id) if agency.masteragent_id else None
            if not master_agent:
                raise AttractionsError("Master agent user not found")
            approvers.append(_as_approver(master_agent))
            creator_id = master_agent.id

        elif isinstance(escalation, ParentCompanyEscalation):
            company = await self.accounts.get_user(escalation.parent_id) if escalation.parent_id else None
            if not company:
                raise AttractionsError("Company user not found")
            approvers.append(_as_approver(company))
            creator_id = company.id

        elif isinstance(escalation, DelegatedApproverLookup):
            creator_id = escalation.creator_id

        if creator_id:
            approvers.extend(await self._delegated_approvers(creator_id, transaction_type))

        return _unique(approvers)

    async def _delegated_approvers(self, creator_id: str, transaction_type: TransactionType) -> List[Approver]:
        """Users whose access level, created by ``creator_id``, grants approval"""
        field = ACCESS_CATEGORY[TransactionType(transaction_type)]
        levels = await self.accounts.get_access_levels_created_by(creator_id)
        approving_ids = [level.id for level in levels if getattr(level, field) == APPROVER_ACCESS]
        if not approving_ids:
            return []

        users = await self.accounts.get_users_with_access_levels(approving_ids)
        return [_as_approver(u) for u in users]


def _unique(approvers: List[Approver]) -> List[Approver]:
    seen = set()
    result = []
    for approver in approvers:
        if approver.id not in seen:
            seen.add(approver.id)
            result.append(approver)
    return result
