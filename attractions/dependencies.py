"""
Application container.

Builds the shared clients, caches and services once per application and
exposes them to routes through FastAPI dependencies. Tests replace the
container on ``app.state`` or override the dependencies directly.
"""

from typing import Optional

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from attractions.accounts.service import AccountService
from attractions.approvals.service import ApprovalService
from attractions.approvals.tokens import ApprovalTokenCodec
from attractions.auth.service import AuthService
from attractions.bookings.hydration import HydrationService
from attractions.bookings.ledger import LedgerService
from attractions.bookings.orchestrator import BookingOrchestrator
from attractions.cache import TTLCache
from attractions.catalogue.service import CatalogueService
from attractions.config import settings
from attractions.currency.service import CurrencyService
from attractions.notifications.email import EmailService
from attractions.store import DocumentStore
from attractions.vendor.client import VendorClient
from attractions.vendor.session import VendorSessionManager
from attractions.wallet.service import BalanceService


class Container:
    """Holds one instance of every service"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        http: Optional[httpx.AsyncClient] = None,
        email: Optional[EmailService] = None,
    ):
        self.http = http or httpx.AsyncClient(timeout=settings.API_TIMEOUT)
        self.store = DocumentStore(session_factory)

        self.rate_cache = TTLCache(default_ttl=settings.CURRENCY_CACHE_TTL)
        self.approval_cache = TTLCache(default_ttl=settings.APPROVAL_CACHE_MINUTES * 60)

        self.accounts = AccountService(self.store)
        self.auth = AuthService(self.accounts)
        self.codec = ApprovalTokenCodec(settings.APPROVAL_SECRET_KEY)
        self.email = email or EmailService()
        self.vendor = VendorClient(self.http, settings.vendor_base_url, settings.API_TIMEOUT)
        self.sessions = VendorSessionManager(self.vendor, self.store, settings.vendor_credentials)
        self.balances = BalanceService(self.store, self.accounts)
        self.ledger = LedgerService(self.store)
        self.hydration = HydrationService(self.store)
        self.currency = CurrencyService(self.http, self.rate_cache)
        self.approvals = ApprovalService(
            self.store, self.accounts, self.codec, self.email, self.approval_cache
        )
        self.orchestrator = BookingOrchestrator(
            accounts=self.accounts,
            approvals=self.approvals,
            balances=self.balances,
            sessions=self.sessions,
            vendor=self.vendor,
            ledger=self.ledger,
            currency=self.currency,
            codec=self.codec,
        )
        self.catalogue = CatalogueService(self.vendor, self.sessions, self.currency)

    async def close(self) -> None:
        await self.http.aclose()


def get_container(request: Request) -> Container:
    return request.app.state.container

def get_accounts(request: Request) -> AccountService:
    return get_container(request).accounts

def get_auth_service(request: Request) -> AuthService:
    return get_container(request).auth

def get_orchestrator(request: Request) -> BookingOrchestrator:
    return get_container(request).orchestrator

def get_hydration(request: Request) -> HydrationService:
    return get_container(request).hydration

def get_approval_service(request: Request) -> ApprovalService:
    return get_container(request).approvals

def get_catalogue(request: Request) -> CatalogueService:
    return get_container(request).catalogue

def get_balance_service(request: Request) -> BalanceService:
    return get_container(request).balances
