import pytest

from attractions.accounts.service import AccountService
from attractions.bookings.orchestrator import BookingOrchestrator, BookingRun
from attractions.bookings.schemas import BookingState
from attractions.exceptions import (
    ApprovalRequired, AuthenticationFailure, InsufficientBalance, InvalidBookingRequest,
    InvalidRequest, LedgerCommitFailed, NoApproversFound, Unauthenticated, UserNotFound,
    VendorBookingFailed
)
from attractions.store import Collections
from tests.conftest import RATES_PATH, VENDOR_PREFIX, booking_payload

CREATE_PATH = f"{VENDOR_PREFIX}/transaction/create"
AUTH_PATH = f"{VENDOR_PREFIX}/auth/login"


@pytest.fixture
async def orchestrator(container, world):
    return container.orchestrator


async def _ledger(store):
    return await store.find(Collections.LEDGER)


async def _wallet_amount(store, owner_id):
    return (await store.get(Collections.USER_BALANCE, owner_id))["total"]["amount"]


async def test_booking_end_to_end(orchestrator, world, upstream) -> None:
    run = BookingRun()

    result = await orchestrator.create_transaction("agent_1", booking_payload(), run=run)

    assert result["success"]
    assert result["data"]["reference_number"] == "GT-REF-1"
    assert result["data"]["currency"] == "PHP"
    assert result["data"]["amount"] == 428.4
    assert "currency_conversion" not in result

    entries = await _ledger(world)
    assert len(entries) == 1
    assert entries[0]["transaction_id"] == "GT-REF-1"
    assert entries[0]["amount"] == -300
    assert entries[0]["currency"] == "PHP"
    assert entries[0]["type"] == "attractions"
    assert result["transaction"][0]["transaction_id"] == "GT-REF-1"

    assert len(upstream.calls_to(CREATE_PATH)) == 1
    assert run.history == [
        BookingState.AUTHENTICATE, BookingState.LOAD_USER, BookingState.VALIDATE_REQUEST,
        BookingState.APPROVAL_GATE, BookingState.COMPUTE_TOTAL, BookingState.BALANCE_GATE,
        BookingState.VENDOR_BOOKING, BookingState.COMMIT_LEDGER, BookingState.PRESENT,
        BookingState.COMPLETED,
    ]


@pytest.mark.parametrize("payload", [
    booking_payload(customerName=""),
    booking_payload(email="   "),
    booking_payload(ticketTypes=[]),
    booking_payload(ticketTypes=[{"id": 101, "quantity": 0, "sellingPrice": 10}]),
    booking_payload(ticketTypes=[{"quantity": 1, "sellingPrice": 10}]),
    booking_payload(ticketTypes=[{"id": "abc", "quantity": 1}]),
])
async def test_invalid_payload_touches_nothing(orchestrator, world, upstream, payload) -> None:
    run = BookingRun()

    with pytest.raises(InvalidBookingRequest) as exc:
        await orchestrator.create_transaction("agent_1", payload, run=run)

    assert exc.value.data["failed_step"] == "validate_request"
    assert run.state == BookingState.ABORTED
    assert upstream.calls == []
    assert await _ledger(world) == []


async def test_unauthenticated(orchestrator, upstream) -> None:
    with pytest.raises(Unauthenticated):
        await orchestrator.create_transaction(None, booking_payload())
    with pytest.raises(UserNotFound):
        await orchestrator.create_transaction("ghost", booking_payload())

    assert upstream.calls == []


async def test_restricted_user_needs_approval_before_vendor(orchestrator, world, upstream) -> None:
    with pytest.raises(ApprovalRequired) as exc:
        await orchestrator.create_transaction("booker_1", booking_payload())

    assert exc.value.data["failed_step"] == "approval_gate"
    assert upstream.calls == []
    assert await _ledger(world) == []


async def test_approved_booking_for_restricted_user(orchestrator, container, world) -> None:
    await world.set(Collections.BOOKING_APPROVALS, "req-1", {"status": 1, "applicant_id": "booker_1"})

    result = await orchestrator.create_transaction(
        "booker_1", booking_payload(), approval_id=container.codec.hash("req-1")
    )

    assert result["transaction"][0]["userId"] == "booker_1"


async def test_insufficient_balance_stops_before_vendor(orchestrator, world, upstream) -> None:
    payload = booking_payload(ticketTypes=[{"id": 101, "quantity": 10, "sellingPrice": 150}])

    with pytest.raises(InsufficientBalance) as exc:
        await orchestrator.create_transaction("agent_1", payload)

    assert exc.value.data["failed_step"] == "balance_gate"
    assert upstream.calls == []


async def test_admin_books_with_empty_wallet(orchestrator, world) -> None:
    result = await orchestrator.create_transaction("admin_1", booking_payload())

    assert result["data"]["reference_number"] == "GT-REF-1"
    assert len(await _ledger(world)) == 1


async def test_vendor_failure_writes_no_ledger(orchestrator, world, upstream) -> None:
    upstream.on(CREATE_PATH, {"success": False, "error": {"code": "T1", "message": "No stock"}})

    with pytest.raises(VendorBookingFailed) as exc:
        await orchestrator.create_transaction("agent_1", booking_payload())

    assert exc.value.data["failed_step"] == "vendor_booking"
    assert exc.value.outcome_ambiguous
    assert await _ledger(world) == []


async def test_vendor_login_failure(orchestrator, world, upstream) -> None:
    upstream.on(AUTH_PATH, {}, status_code=401)

    with pytest.raises(AuthenticationFailure):
        await orchestrator.create_transaction("agent_1", booking_payload())

    assert upstream.calls_to(CREATE_PATH) == []


async def test_ledger_failure_reports_vendor_reference(orchestrator, container, world, monkeypatch) -> None:
    async def broken_commit(**kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(container.ledger, "commit", broken_commit)

    with pytest.raises(LedgerCommitFailed) as exc:
        await orchestrator.create_transaction("agent_1", booking_payload())

    assert exc.value.data["reference_number"] == "GT-REF-1"
    assert exc.value.data["failed_step"] == "commit_ledger"


async def test_conversion_failure_returns_unconverted_booking(orchestrator, world, upstream) -> None:
    upstream.on(RATES_PATH, {"success": False})

    result = await orchestrator.create_transaction("agent_1", booking_payload())

    assert result["data"]["currency"] == "SGD"
    assert result["currency_conversion"] == {"status": False, "error": "Unable to fetch currency exchange rate"}
    assert len(await _ledger(world)) == 1


async def test_atomic_debit_takes_and_returns_funds(orchestrator, world, upstream) -> None:
    orchestrator.atomic_debit = True

    await orchestrator.create_transaction("agent_1", booking_payload())
    assert await _wallet_amount(world, "agent_1") == 700.0

    upstream.on(CREATE_PATH, {"success": False, "error": "closed"})
    with pytest.raises(VendorBookingFailed):
        await orchestrator.create_transaction("agent_1", booking_payload())
    assert await _wallet_amount(world, "agent_1") == 700.0


async def test_atomic_debit_charges_shared_wallet(orchestrator, container, world) -> None:
    orchestrator.atomic_debit = True
    await world.set(Collections.BOOKING_APPROVALS, "req-1", {"status": 1, "applicant_id": "booker_1"})

    await orchestrator.create_transaction("booker_1", booking_payload(), approval_id=container.codec.hash("req-1"))

    assert await _wallet_amount(world, "agent_1") == 700.0


async def test_request_approval_requires_valid_hash(orchestrator) -> None:
    with pytest.raises(InvalidRequest, match="Hash is required"):
        await orchestrator.request_approval("booker_1", None, booking_payload())
    with pytest.raises(InvalidRequest, match="Invalid hash"):
        await orchestrator.request_approval("booker_1", "plain-id", booking_payload())


async def test_request_approval_notifies_approvers(orchestrator, container, world, ses, upstream) -> None:
    result = await orchestrator.request_approval("booker_1", container.codec.hash("req-5"), booking_payload())

    assert result.status
    assert result.request_id == "req-5"
    assert len(ses.sent) == 2
    assert upstream.calls == []

    stored = await world.get(Collections.BOOKING_APPROVALS, "req-5")
    assert stored["meta"]["request"] == {
        "Type": "Attractions",
        "Total Cost": "PHP 300.0",
        "Ticket Types": "Sky Park - Adult",
        "No. of Tickets": 1,
    }


async def test_request_approval_checks_balance(orchestrator, container, world, ses) -> None:
    payload = booking_payload(ticketTypes=[{"id": 101, "quantity": 10, "sellingPrice": 150}])

    with pytest.raises(InsufficientBalance):
        await orchestrator.request_approval("booker_1", container.codec.hash("req-5"), payload)

    assert ses.sent == []


async def test_request_approval_without_approvers(orchestrator, container, world) -> None:
    await world.set(Collections.USER_BALANCE, "master_1", {"total": {"amount": 1000.0, "currency": "PHP"}})

    with pytest.raises(NoApproversFound):
        await orchestrator.request_approval("master_1", container.codec.hash("req-5"), booking_payload())


async def test_cancel_transaction(orchestrator, upstream) -> None:
    upstream.on(f"{VENDOR_PREFIX}/transaction/revoke", {"success": True, "data": {"status": "REVOKED"}})

    with pytest.raises(InvalidRequest):
        await orchestrator.cancel_transaction(None)

    result = await orchestrator.cancel_transaction("GT-REF-1")

    assert result["data"]["status"] == "REVOKED"
    call = upstream.calls_to(f"{VENDOR_PREFIX}/transaction/revoke")[0]
    assert call.url.params["reference_number"] == "GT-REF-1"


async def test_string_amounts_from_vendor_are_converted(orchestrator, world, upstream) -> None:
    upstream.on(CREATE_PATH, {"success": True, "data": {
        "reference_number": "GT-REF-9", "currency": "SGD", "amount": "10.00", "tickets": [{"price": "5.00"}],
    }})

    result = await orchestrator.create_transaction("agent_1", booking_payload())

    assert result["data"]["amount"] == 428.4
    assert result["data"]["tickets"][0]["price"] == 214.2
    assert result["transaction"][0]["transaction_id"] == "GT-REF-9"
    assert len(await _ledger(world)) == 1


async def test_ledger_read_back_failure_still_returns_booking(orchestrator, container, world, monkeypatch) -> None:
    async def broken_get(transaction_id):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(container.ledger, "get", broken_get)
    run = BookingRun()

    result = await orchestrator.create_transaction("agent_1", booking_payload(), run=run)

    assert result["data"]["reference_number"] == "GT-REF-1"
    assert result["transaction"] == []
    assert run.state == BookingState.COMPLETED
    assert len(await _ledger(world)) == 1


async def test_conversion_crash_returns_unconverted_booking(orchestrator, container, world, monkeypatch) -> None:
    async def broken_convert(response, currency, policy=None):
        raise TypeError("unsupported operand")

    monkeypatch.setattr(container.currency, "convert_booking_response", broken_convert)

    result = await orchestrator.create_transaction("agent_1", booking_payload())

    assert result["data"]["reference_number"] == "GT-REF-1"
    assert result["data"]["currency"] == "SGD"
    assert result["currency_conversion"] == {"status": False, "error": "Unable to convert booking amounts"}
    assert result["transaction"][0]["transaction_id"] == "GT-REF-1"


class Spy:
    """Records every awaited method call"""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        async def method(*args, **kwargs):
            self.calls.append(name)
        return method


async def test_invalid_payload_never_reaches_collaborators(world, container) -> None:
    spies = {name: Spy() for name in ("approvals", "balances", "sessions", "vendor", "ledger", "currency")}
    orchestrator = BookingOrchestrator(accounts=AccountService(world), codec=container.codec, **spies)

    with pytest.raises(InvalidBookingRequest):
        await orchestrator.create_transaction("agent_1", booking_payload(email=None))

    assert {name: spy.calls for name, spy in spies.items()} == {name: [] for name in spies}
