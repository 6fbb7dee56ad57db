import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APPROVAL_SECRET_KEY"] = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
os.environ["ENVIRONMENT"] = "development"
os.environ["VENDOR_DEV_BASE_URL"] = "https://vendor.test/api"
os.environ["VENDOR_DEV_USERNAME"] = "reseller"
os.environ["VENDOR_DEV_PASSWORD"] = "reseller-pass"
os.environ["EXCHANGERATE_API_URL"] = "https://rates.test/v1/convert"
os.environ["EXCHANGERATE_API_KEY"] = "rates-key"
os.environ["APPROVAL_LINK_BASE_URL"] = "https://portal.test/home"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Any, Dict, List, Optional

import httpx
import pytest
from botocore.exceptions import ClientError

from attractions.accounts.service import AccountService
from attractions.database import build_engine, build_sessionmaker, create_tables
from attractions.dependencies import Container
from attractions.notifications.email import EmailService
from attractions.store import Collections, DocumentStore

APPROVAL_KEY = os.environ["APPROVAL_SECRET_KEY"]
VENDOR_PREFIX = "/api"
RATES_PATH = "/v1/convert"


class FakeClock:
    """Manually advanced clock for TTL caches"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """Answers mocked HTTP calls by path and records every request"""

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.calls: List[httpx.Request] = []

    def on(self, path: str, body: Any = None, status_code: int = 200, exc: Optional[Exception] = None) -> None:
        self.routes[path] = (status_code, body, exc)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.url.path not in self.routes:
            return httpx.Response(404, json={"success": False, "error": {"code": "404", "message": "Not found"}})

        status_code, body, exc = self.routes[request.url.path]
        if exc is not None:
            raise exc
        if callable(body):
            body = body(request)
        return httpx.Response(status_code, json=body)

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [call for call in self.calls if call.url.path == path]


class FakeSES:
    """Stands in for the boto3 SES client"""

    def __init__(self, failing: Optional[set] = None):
        self.sent: List[Dict[str, Any]] = []
        self.failing = failing or set()

    def send_raw_email(self, **kwargs):
        if self.failing.intersection(kwargs["Destinations"]):
            raise ClientError({"Error": {"Code": "MessageRejected", "Message": "Address blacklisted"}}, "SendRawEmail")
        self.sent.append(kwargs)
        return {"MessageId": f"msg-{len(self.sent)}"}


def booking_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "customerName": "Juan Dela Cruz",
        "email": "juan@example.com",
        "mobileNumber": 9171234567,
        "ticketTypes": [
            {
                "id": 101,
                "quantity": 2,
                "sellingPrice": 150,
                "visitDate": "2026-12-01",
                "product_info": {"name": "Sky Park", "ticket_name": "Adult"},
            }
        ],
    }
    payload.update(overrides)
    return payload


def vendor_booking_body(reference: str = "GT-REF-1") -> Dict[str, Any]:
    return {
        "success": True,
        "data": {
            "reference_number": reference,
            "currency": "SGD",
            "amount": 10.0,
            "tickets": [{"id": 1, "price": 5.0, "totalPrice": 10.0}],
        },
    }


WORLD = {
    Collections.USERS: {
        "agent_1": {"type": "AGENT", "agency_id": "agency_1", "first_name": "Andy", "last_name": "Cruz",
                    "email": "agent@example.com", "currency": "PHP"},
        "approver_1": {"type": "SUBAGENT", "agency_id": "agency_1", "parent_id": "agent_1",
                       "access_level": "al_approver", "first_name": "Pia", "last_name": "Lim",
                       "email": "approver@example.com", "currency": "PHP"},
        "booker_1": {"type": "SUBAGENT", "agency_id": "agency_1", "parent_id": "agent_1",
                     "access_level": "al_restricted", "first_name": "Ben", "last_name": "Go",
                     "email": "booker@example.com", "currency": "PHP"},
        "free_sub": {"type": "SUBAGENT", "agency_id": "agency_1", "parent_id": "agent_1",
                     "access_level": "al_free", "first_name": "Fe", "last_name": "Uy",
                     "email": "free@example.com", "currency": "PHP"},
        "master_1": {"type": "MASTERAGENT", "agency_id": "agency_1", "first_name": "Mara",
                     "last_name": "Santos", "email": "master@example.com", "currency": "PHP"},
        "admin_1": {"type": "SUPERADMIN", "first_name": "Sam", "last_name": "Reyes",
                    "email": "admin@example.com", "currency": "PHP"},
    },
    Collections.AGENCIES: {
        "agency_1": {"masteragent_id": "master_1", "company_name": "Island Hoppers"},
    },
    Collections.ACCESS_LEVELS: {
        "al_restricted": {"created_by": "agent_1", "isSharedWallet": True, "holiday": 2, "attractions": 2},
        "al_approver": {"created_by": "agent_1", "isSharedWallet": False, "holiday": 4, "attractions": 4},
        "al_free": {"created_by": "agent_1", "isSharedWallet": False, "holiday": 3, "attractions": 3},
    },
    Collections.USER_BALANCE: {
        "agent_1": {"total": {"amount": 1000.0, "currency": "PHP"}, "count": 0, "last5": []},
        "free_sub": {"total": {"amount": 500.0, "currency": "PHP"}, "count": 0, "last5": []},
        "admin_1": {"total": {"amount": 0.0, "currency": "PHP"}, "count": 0, "last5": []},
    },
}


async def seed(store: DocumentStore, world: Optional[Dict] = None) -> None:
    for collection, documents in (world or WORLD).items():
        for key, data in documents.items():
            await store.set(collection, key, data)


@pytest.fixture
async def session_factory():
    engine = build_engine("sqlite+aiosqlite://")
    await create_tables(engine)
    yield build_sessionmaker(engine)
    await engine.dispose()


@pytest.fixture
async def store(session_factory):
    return DocumentStore(session_factory)


@pytest.fixture
async def world(store):
    await seed(store)
    return store


@pytest.fixture
def accounts(store):
    return AccountService(store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    fake = FakeUpstream()
    fake.on(f"{VENDOR_PREFIX}/auth/login", {"data": {"access_token": "vendor-token", "expires_in": 3600}})
    fake.on(f"{VENDOR_PREFIX}/transaction/create", vendor_booking_body())
    fake.on(RATES_PATH, {"success": True, "info": {"rate": 42.0}})
    return fake


@pytest.fixture
async def http(upstream):
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    yield client
    await client.aclose()


@pytest.fixture
def ses():
    return FakeSES()


@pytest.fixture
def container(session_factory, http, ses):
    return Container(session_factory, http=http, email=EmailService(client=ses))
