import pytest

from attractions.accounts.schemas import TransactionType, UserRecord
from attractions.accounts.service import AccountService
from attractions.approvals.resolution import (
    ApproverResolver, DelegatedApproverLookup, MasterAgentEscalation, NoEscalation,
    ParentCompanyEscalation, SuperAdminEscalation, classify
)
from attractions.exceptions import AttractionsError
from attractions.store import Collections


def test_classify_sub_agent_variants() -> None:
    staff = UserRecord(id="ops_admin_7", type="SUBAGENT", agency_id="agency_1")
    partner_owner = UserRecord(id="agency_1", type="SUBAGENT", agency_id="agency_1")
    company_staff = UserRecord(id="u9", type="SUBAGENT", agency_id="agency_1", parent_id="agent_1")

    assert classify(staff) == SuperAdminEscalation()
    assert classify(partner_owner) == MasterAgentEscalation(agency_id="agency_1")
    assert classify(company_staff) == ParentCompanyEscalation(parent_id="agent_1")


def test_classify_other_types() -> None:
    assert classify(UserRecord(id="agent_1", type="AGENT")) == DelegatedApproverLookup(creator_id="agent_1")
    assert classify(UserRecord(id="m1", type="MASTERAGENT")) == NoEscalation()
    assert classify(UserRecord(id="s1", type="SUPERADMIN")) == NoEscalation()


@pytest.fixture
def resolver(world):
    return ApproverResolver(AccountService(world))


async def _ids(resolver, world, user_id):
    user = await AccountService(world).get_user(user_id)
    return [a.id for a in await resolver.resolve(user, TransactionType.ATTRACTIONS)]


async def test_parent_company_and_its_delegated_approvers(world, resolver) -> None:
    assert await _ids(resolver, world, "booker_1") == ["agent_1", "approver_1"]


async def test_agent_gets_delegated_approvers_only(world, resolver) -> None:
    assert await _ids(resolver, world, "agent_1") == ["approver_1"]


async def test_partner_owner_escalates_to_master_agent(world, resolver) -> None:
    await world.set(Collections.USERS, "agency_1", {"type": "SUBAGENT", "agency_id": "agency_1"})
    assert await _ids(resolver, world, "agency_1") == ["master_1"]


async def test_platform_staff_escalates_to_admins(world, resolver) -> None:
    await world.set(Collections.USERS, "acct_1", {"type": "ACCOUNTING", "first_name": "Al", "email": "acct@example.com"})
    await world.set(Collections.USERS, "ops_admin_7", {"type": "SUBAGENT", "agency_id": "agency_1"})
    await world.set(Collections.ACCESS_LEVELS, "al_platform", {"created_by": "admin_user", "attractions": 4})
    await world.set(Collections.USERS, "platform_approver", {"type": "SUBAGENT", "access_level": "al_platform"})

    ids = await _ids(resolver, world, "ops_admin_7")

    assert ids == ["admin_1", "acct_1", "platform_approver"]


async def test_no_duplicates(world, resolver) -> None:
    await world.set(Collections.USERS, "agent_1", {
        "type": "AGENT", "agency_id": "agency_1", "access_level": "al_approver", "first_name": "Andy",
    })
    assert await _ids(resolver, world, "booker_1") == ["agent_1", "approver_1"]


async def test_missing_parent_company(world, resolver) -> None:
    await world.set(Collections.USERS, "orphan", {"type": "SUBAGENT", "agency_id": "agency_1", "parent_id": "gone"})

    with pytest.raises(AttractionsError, match="Company user not found"):
        await _ids(resolver, world, "orphan")


async def test_missing_agency(world, resolver) -> None:
    await world.set(Collections.USERS, "agency_x", {"type": "SUBAGENT", "agency_id": "agency_x"})

    with pytest.raises(AttractionsError, match="Agency data not found"):
        await _ids(resolver, world, "agency_x")
