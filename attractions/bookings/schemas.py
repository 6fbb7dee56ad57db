from pydantic import BaseModel, ConfigDict, Field, ValidationError, validator
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum

from attractions.exceptions import InvalidBookingRequest

class BookingState(str, Enum):
    """Steps of a booking request, in order"""
    AUTHENTICATE = "authenticate"
    LOAD_USER = "load_user"
    VALIDATE_REQUEST = "validate_request"
    APPROVAL_GATE = "approval_gate"
    COMPUTE_TOTAL = "compute_total"
    BALANCE_GATE = "balance_gate"
    VENDOR_BOOKING = "vendor_booking"
    COMMIT_LEDGER = "commit_ledger"
    PRESENT = "present"
    COMPLETED = "completed"
    ABORTED = "aborted"

# Booking payload models
class QuestionAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    answer: Optional[str] = None
    ticketIndex: Optional[int] = None

class OtherInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    partnerReference: Optional[str] = None

class TicketLine(BaseModel):
    """One ticket type and quantity in a booking"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = 0
    quantity: int = 0
    sellingPrice: float = 0
    fromResellerId: Optional[int] = None
    visitDate: Optional[str] = None
    index: Optional[int] = None
    event_id: Optional[int] = None
    questionList: Optional[Tuple[QuestionAnswer, ...]] = None
    packageItems: Optional[Tuple[Any, ...]] = None
    visitDateSettings: Optional[Any] = None
    # Display-only product details, never sent to the vendor
    product_info: Optional[Dict[str, Any]] = None

    @validator("id", "quantity", "sellingPrice", pre=True)
    def empty_as_zero(cls, v):
        return 0 if v in (None, "") else v

    @property
    def line_total(self) -> float:
        return self.sellingPrice * self.quantity

    @property
    def display_name(self) -> str:
        info = self.product_info or {}
        return f"{info.get('name') or ''} - {info.get('ticket_name') or ''}"

class BookingRequest(BaseModel):
    """Validated, immutable create-transaction payload"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    currency: str
    customerName: Optional[str] = None
    email: Optional[str] = None
    ticketTypes: Tuple[TicketLine, ...] = ()
    alternateEmail: Optional[str] = None
    creditCardCurrencyId: Optional[int] = None
    groupName: Optional[str] = None
    groupBooking: Optional[bool] = None
    groupNoOfMember: Optional[int] = None
    isGrabPayPurchase: Optional[bool] = None
    isInstantRedeemAll: Optional[bool] = None
    isSingleCodeForGroup: Optional[bool] = None
    mobileNumber: Optional[str] = None
    mobilePrefix: Optional[str] = None
    otherInfo: Optional[OtherInfo] = None
    passportNumber: Optional[str] = None
    paymentMethod: Optional[str] = None
    remarks: Optional[str] = None
    promoCodeId: Optional[int] = None
    promotionType: Optional[str] = None

    @validator("mobileNumber", pre=True)
    def mobile_as_text(cls, v):
        return None if v is None else str(v)

    @classmethod
    def parse(cls, currency: str, payload: Dict[str, Any]) -> "BookingRequest":
        """Build and validate a booking request from raw input"""
        data = {k: v for k, v in (payload or {}).items() if k != "currency"}
        try:
            request = cls(currency=currency, **data)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise InvalidBookingRequest(f"Invalid booking request: {location} {first.get('msg')}".strip())

        request.validate_booking()
        return request

    def validate_booking(self) -> None:
        if not self.customerName or not self.customerName.strip() or not self.email or not self.email.strip():
            raise InvalidBookingRequest("Customer name and email are required")

        if not self.ticketTypes:
            raise InvalidBookingRequest("At least one ticket type is required")

        for ticket in self.ticketTypes:
            if not ticket.id or ticket.quantity <= 0:
                raise InvalidBookingRequest("Each ticket type must have an ID and a quantity greater than 0")

    @property
    def total(self) -> float:
        """Sum of selling price times quantity, unrounded"""
        return sum(ticket.line_total for ticket in self.ticketTypes)

    @property
    def ticket_count(self) -> int:
        return len(self.ticketTypes)

    @property
    def ticket_names(self) -> str:
        names = [t.display_name for t in self.ticketTypes if t.display_name.strip() != "-"]
        return ", ".join(names)

    def to_vendor_payload(self) -> Dict[str, Any]:
        """Payload sent to the vendor, without unset fields"""
        return self.model_dump(
            mode="json",
            exclude_none=True,
            exclude={"ticketTypes": {"__all__": {"product_info"}}},
        )

# Vendor booking response
def _to_number(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        return 0.0

class VendorTicket(BaseModel):
    """Ticket in a vendor booking response, prices as numbers"""
    model_config = ConfigDict(extra="allow")

    price: Optional[float] = None
    totalPrice: Optional[float] = None
    sellingPrice: float = 0
    paidAmount: float = 0
    checkoutPrice: float = 0

    @validator("price", "totalPrice", pre=True)
    def optional_number(cls, v):
        return None if v is None else _to_number(v)

    @validator("sellingPrice", "paidAmount", "checkoutPrice", pre=True)
    def number(cls, v):
        return _to_number(v)

class VendorTransaction(BaseModel):
    """``data`` of a vendor booking response"""
    model_config = ConfigDict(extra="allow")

    reference_number: Optional[str] = None
    currency: Optional[str] = None
    amount: float = 0
    totalAmount: Optional[float] = None
    tickets: Optional[List[VendorTicket]] = None

    @validator("reference_number", pre=True)
    def reference_as_text(cls, v):
        return None if v in (None, "") else str(v)

    @validator("amount", pre=True)
    def number(cls, v):
        return _to_number(v)

    @validator("totalAmount", pre=True)
    def optional_number(cls, v):
        return None if v is None else _to_number(v)

    @validator("tickets", pre=True)
    def tickets_list(cls, v):
        if not isinstance(v, list):
            return None
        return [ticket for ticket in v if isinstance(ticket, dict)]

    @classmethod
    def normalize(cls, data: Dict[str, Any], currency: str) -> Dict[str, Any]:
        """Vendor ``data`` with numeric amounts, defaulting the currency"""
        transaction = cls(**{"currency": currency, **data})
        if not transaction.currency:
            transaction.currency = currency
        output = transaction.model_dump()
        for field in ("totalAmount", "tickets"):
            if output.get(field) is None:
                output.pop(field, None)
        for ticket in output.get("tickets") or []:
            for field in ("price", "totalPrice"):
                if ticket.get(field) is None:
                    ticket.pop(field, None)
        return output

# Responses
class TransactionResult(BaseModel):
    """Data returned by a completed booking"""
    model_config = ConfigDict(extra="allow")

    success: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)
    transaction: List[Dict[str, Any]] = Field(default_factory=list)
    currency_conversion: Optional[Dict[str, Any]] = None

class CancelTransactionRequest(BaseModel):
    reference_number: str
