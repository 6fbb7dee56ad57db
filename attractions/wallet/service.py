import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from attractions.accounts.schemas import UserRecord, UserType
from attractions.accounts.service import AccountService
from attractions.config import settings
from attractions.exceptions import (
    AttractionsError, BalanceLookupFailure, InsufficientBalance, InsufficientBalanceAfterHolds
)
from attractions.store import Collections, DocumentStore

logger = logging.getLogger(__name__)

class WalletBalance(BaseModel):
    """Balance snapshot of a wallet owner"""
    owner_id: str
    amount: float
    currency: str
    count: int = 0
    last5: List[Dict[str, Any]] = Field(default_factory=list)

class BalanceCheck(BaseModel):
    """Result of an affordability check"""
    owner_id: Optional[str] = None
    balance: float = 0
    debit: float = 0
    funds_on_hold: float = 0
    next_balance: float = 0
    skipped: bool = False

class BalanceService:
    """Checks a prospective debit against the wallet balance and funds on hold"""

    def __init__(self, store: DocumentStore, accounts: AccountService):
        self.store = store
        self.accounts = accounts

    async def resolve_wallet_owner(self, user: UserRecord) -> str:
        """Account whose balance a user's purchases are debited from"""
        if user.type != UserType.SUBAGENT.value or user.has_admin_marker:
            return user.id

        access_level = await self.accounts.get_access_level(user.access_level)
        if not access_level or not access_level.is_shared_wallet:
            return user.id

        if user.id == user.agency_id:
            agency = await self.accounts.get_agency(user.agency_id)
            if not agency or not agency.masteragent_id:
                raise BalanceLookupFailure("Invalid parent partner")
            parent = await self.accounts.get_user(agency.masteragent_id)
        else:
            parent = await self.accounts.get_user(user.parent_id) if user.parent_id else None

        if not parent:
            raise BalanceLookupFailure("Invalid parent company")
        return parent.id

    async def get_balance(self, user: UserRecord) -> WalletBalance:
        """Balance of the user's effective wallet"""
        try:
            owner_id = await self.resolve_wallet_owner(user)
        except BalanceLookupFailure:
            raise
        except AttractionsError as e:
            raise BalanceLookupFailure(f"Failed to resolve wallet ID: {e.message}") from e

        owner = user if owner_id == user.id else await self.accounts.get_user(owner_id)
        if not owner:
            raise BalanceLookupFailure("Unable to retrieve balance information")

        data = await self.store.get(Collections.USER_BALANCE, owner_id) or {}
        total = data.get("total")
        amount = total.get("amount", 0) if isinstance(total, dict) else (total or 0)

        return WalletBalance(
            owner_id=owner_id,
            amount=float(amount),
            currency=owner.currency or settings.DEFAULT_CURRENCY,
            count=data.get("count") or 0,
            last5=data.get("last5") or [],
        )

    async def get_funds_on_hold(self, owner_id: str, currency: str) -> float:
        """Total amount on hold for a wallet owner in one currency"""
        holds = await self.store.find(Collections.USER_FUNDS_ON_HOLD, userId=owner_id)
        total = sum(float(h.get("amount") or 0) for h in holds if h.get("currency") == currency)
        logger.debug("Funds on hold for %s: %s %s", owner_id, total, currency)
        return total

    async def has_sufficient_balance(self, user: UserRecord, debit: float) -> BalanceCheck:
        """Raise InsufficientBalance* unless the wallet can cover the debit"""
        if user.is_admin:
            logger.info("Admin user %s - skipping balance validation", user.id)
            return BalanceCheck(debit=debit, skipped=True)

        balance = await self.get_balance(user)
        next_balance = balance.amount - debit

        logger.info(
            "Balance check for %s (wallet %s): balance=%s debit=%s next=%s",
            user.id, balance.owner_id, balance.amount, debit, next_balance,
        )
        if next_balance < 0:
            raise InsufficientBalance("User does not have enough balance")

        on_hold = await self.get_funds_on_hold(balance.owner_id, balance.currency)
        if next_balance - on_hold < 0:
            raise InsufficientBalanceAfterHolds(
                "Not enough credits for this transaction due to funds on hold",
                data={"funds_on_hold": on_hold, "next_balance": next_balance},
            )

        return BalanceCheck(
            owner_id=balance.owner_id,
            balance=balance.amount,
            debit=debit,
            funds_on_hold=on_hold,
            next_balance=next_balance,
        )

    async def reserve(self, owner_id: str, debit: float) -> bool:
        """Atomically take ``debit`` off the wallet if it stays non-negative"""
        return await self.store.adjust_amount(Collections.USER_BALANCE, owner_id, -abs(debit), floor=0)

    async def release(self, owner_id: str, debit: float) -> bool:
        """Give back an amount taken by ``reserve``"""
        return await self.store.adjust_amount(Collections.USER_BALANCE, owner_id, abs(debit))
