"""
Booking orchestration.

A booking runs through a fixed sequence of steps: resolve the caller, load
the user, validate the payload, pass the approval gate, total the tickets,
pass the balance gate, book with the vendor, record the ledger entry and
present the result. Any failure aborts the run; no step is retried. Once the
vendor booking call has been made its side effects cannot be undone here, so
failures from that point on carry the vendor reference where one exists.
"""

import logging
from typing import Any, Dict, List, Optional

from attractions.accounts.schemas import TransactionType, UserRecord
from attractions.accounts.service import AccountService
from attractions.approvals.schemas import ApprovalDispatchResult
from attractions.approvals.service import ApprovalService
from attractions.approvals.tokens import ApprovalTokenCodec
from attractions.bookings.ledger import LedgerService
from attractions.bookings.schemas import BookingRequest, BookingState, TransactionResult
from attractions.config import settings
from attractions.currency.service import CurrencyService
from attractions.exceptions import (
    AttractionsError, InsufficientBalance, InvalidRequest, LedgerCommitFailed,
    NoApproversFound, Unauthenticated, UserNotFound, VendorBookingFailed
)
from attractions.vendor.client import VendorClient
from attractions.vendor.session import VendorSessionManager
from attractions.wallet.service import BalanceService

logger = logging.getLogger(__name__)

# Access category checked before booking
APPROVAL_CATEGORY = TransactionType.PACKAGE
# Type recorded on the ledger entry
LEDGER_TYPE = TransactionType.ATTRACTIONS

CONVERSION_FAILED = "Unable to convert booking amounts"


class BookingRun:
    """Step history of one booking request"""

    def __init__(self):
        self.history: List[BookingState] = []

    @property
    def state(self) -> Optional[BookingState]:
        return self.history[-1] if self.history else None

    def enter(self, state: BookingState) -> None:
        logger.debug("Booking step: %s", state.value)
        self.history.append(state)

    def abort(self, error: AttractionsError) -> None:
        failed_step = self.state.value if self.state else None
        error.data.setdefault("failed_step", failed_step)
        self.history.append(BookingState.ABORTED)
        logger.warning("Booking aborted at %s: %s", failed_step, error.message)


class BookingOrchestrator:
    """Runs create-transaction and approval-request flows"""

    def __init__(
        self,
        accounts: AccountService,
        approvals: ApprovalService,
        balances: BalanceService,
        sessions: VendorSessionManager,
        vendor: VendorClient,
        ledger: LedgerService,
        currency: CurrencyService,
        codec: ApprovalTokenCodec,
        atomic_debit: Optional[bool] = None,
    ):
        self.accounts = accounts
        self.approvals = approvals
        self.balances = balances
        self.sessions = sessions
        self.vendor = vendor
        self.ledger = ledger
        self.currency = currency
        self.codec = codec
        self.atomic_debit = settings.ATOMIC_BALANCE_DEBIT if atomic_debit is None else atomic_debit

    async def load_user(self, user_id: Optional[str]) -> UserRecord:
        if not user_id:
            raise Unauthenticated("User not authenticated. Please log in again.")
        user = await self.accounts.get_user(user_id)
        if not user:
            raise UserNotFound("User not authenticated")
        return user

    async def create_transaction(
        self,
        user_id: Optional[str],
        payload: Dict[str, Any],
        approval_id: Optional[str] = None,
        run: Optional[BookingRun] = None,
    ) -> Dict[str, Any]:
        """Book tickets with the vendor and debit the user's wallet"""
        run = run or BookingRun()
        try:
            return await self._create_transaction(run, user_id, payload, approval_id)
        except AttractionsError as e:
            run.abort(e)
            raise

    async def _create_transaction(
        self,
        run: BookingRun,
        user_id: Optional[str],
        payload: Dict[str, Any],
        approval_id: Optional[str],
    ) -> Dict[str, Any]:
        run.enter(BookingState.AUTHENTICATE)
        if not user_id:
            raise Unauthenticated("User not authenticated. Please log in again.")

        run.enter(BookingState.LOAD_USER)
        user = await self.load_user(user_id)
        currency = user.currency or settings.DEFAULT_CURRENCY

        run.enter(BookingState.VALIDATE_REQUEST)
        request = BookingRequest.parse(currency, payload)

        run.enter(BookingState.APPROVAL_GATE)
        await self.approvals.validate_approval_token(APPROVAL_CATEGORY, approval_id, user)

        run.enter(BookingState.COMPUTE_TOTAL)
        total = request.total

        run.enter(BookingState.BALANCE_GATE)
        check = await self.balances.has_sufficient_balance(user, total)
        reserved_from = await self._reserve(check.owner_id, total) if not check.skipped else None

        run.enter(BookingState.VENDOR_BOOKING)
        try:
            token = await self.sessions.get_token()
            response = await self.vendor.create_transaction(request, token)
        except AttractionsError:
            if reserved_from:
                await self.balances.release(reserved_from, total)
            raise

        reference_number = response["data"]["reference_number"]
        logger.info("Vendor booking %s created for %s: %s %s", reference_number, user.id, currency, total)

        run.enter(BookingState.COMMIT_LEDGER)
        try:
            await self.ledger.commit(
                user_id=user.id,
                amount=total,
                currency=currency,
                transaction_type=LEDGER_TYPE,
                created_by=user.id,
                user_name=user.full_name,
                meta={
                    "response": response,
                    "request": request.model_dump(mode="json"),
                },
                agent_id=user.agency_id or user.id,
                transaction_id=reference_number,
            )
        except Exception as e:
            logger.critical(
                "Ledger commit failed after vendor booking %s for user %s (%s %s): %s",
                reference_number, user.id, currency, total, e,
            )
            raise LedgerCommitFailed(
                "Transaction was booked but could not be recorded. Please contact support.",
                data={"reference_number": reference_number},
            ) from e

        run.enter(BookingState.PRESENT)
        result = await self._present(response, currency, reference_number)

        run.enter(BookingState.COMPLETED)
        output = result.model_dump()
        if output.get("currency_conversion") is None:
            output.pop("currency_conversion", None)
        return output

    async def _reserve(self, owner_id: Optional[str], total: float) -> Optional[str]:
        """Take the debit off the wallet up front when atomic debits are on"""
        if not self.atomic_debit or not owner_id:
            return None
        if not await self.balances.reserve(owner_id, total):
            raise InsufficientBalance("User does not have enough balance")
        return owner_id

    async def _present(self, response: Dict[str, Any], currency: str, reference_number: str) -> TransactionResult:
        """Committed booking in the user's currency with its ledger entry.

        Read-back and conversion errors are logged and never fail the booking.
        """
        try:
            entry = await self.ledger.get(reference_number)
        except Exception as e:
            logger.error("Ledger read-back failed for booking %s: %s", reference_number, e)
            entry = None

        try:
            presented = await self.currency.convert_booking_response(response, currency)
        except AttractionsError as e:
            logger.warning("Returning booking %s unconverted: %s", reference_number, e.message)
            presented = {**response, "currency_conversion": {"status": False, "error": e.message}}
        except Exception:
            logger.exception("Currency conversion crashed for booking %s", reference_number)
            presented = {**response, "currency_conversion": {"status": False, "error": CONVERSION_FAILED}}

        result = TransactionResult(**presented)
        result.transaction = [entry] if entry else []
        return result

    async def cancel_transaction(self, reference_number: Optional[str]) -> Dict[str, Any]:
        """Revoke a vendor booking; the ledger entry is left as written"""
        if not reference_number:
            raise InvalidRequest("reference_number is required")
        token = await self.sessions.get_token()
        logger.info("Cancelling vendor transaction %s", reference_number)
        return await self.vendor.cancel_transaction(str(reference_number), token)

    async def request_approval(
        self,
        user_id: Optional[str],
        request_hash: Optional[str],
        payload: Dict[str, Any],
        host: Optional[str] = None,
    ) -> ApprovalDispatchResult:
        """Validate a booking and send it to the user's approvers"""
        if not request_hash:
            raise InvalidRequest("Hash is required")

        request_id = self.codec.unhash(request_hash)
        if not request_id or request_id == request_hash:
            raise InvalidRequest("Invalid hash")

        user = await self.load_user(user_id)
        currency = user.currency or settings.DEFAULT_CURRENCY
        request = BookingRequest.parse(currency, payload)
        total = request.total

        await self.balances.has_sufficient_balance(user, total)

        cost = f"{currency} {total}"
        details = {
            "Type": "Attractions",
            "Total Cost": cost,
            "Ticket Types": request.ticket_names,
            "No. of Tickets": request.ticket_count,
        }

        result = await self.approvals.create_approval_request(
            requester=user,
            cost=cost,
            request_details=details,
            request_id=request_id,
            host=host,
        )
        if not result.status and result.error == "No approvers found for this user":
            raise NoApproversFound(result.error)
        return result
