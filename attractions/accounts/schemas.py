from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum

class UserType(str, Enum):
    """Account types"""
    AGENT = "AGENT"
    SUBAGENT = "SUBAGENT"
    MASTERAGENT = "MASTERAGENT"
    WHITELABEL = "WHITELABEL"
    SUPERADMIN = "SUPERADMIN"
    ACCOUNTING = "ACCOUNTING"
    ADMIN = "ADMIN"

ADMIN_TYPES = {UserType.SUPERADMIN, UserType.ADMIN, UserType.ACCOUNTING}

class TransactionType(str, Enum):
    """Product categories a transaction can belong to"""
    FLIGHT = "flight"
    FLIGHT_NON_LCC = "flightnonlcc"
    HOTEL = "hotel"
    BUS = "bus"
    FERRY = "ferry"
    ATTRACTIONS = "attractions"
    VISA = "visa"
    PACKAGE = "package"
    INSURANCE = "insurance"

# Access-level field holding the permission value for each category
ACCESS_CATEGORY = {
    TransactionType.FLIGHT: "airline",
    TransactionType.FLIGHT_NON_LCC: "airline",
    TransactionType.HOTEL: "hotel",
    TransactionType.BUS: "bus",
    TransactionType.FERRY: "ferry",
    TransactionType.ATTRACTIONS: "attractions",
    TransactionType.VISA: "visa",
    TransactionType.PACKAGE: "holiday",
    TransactionType.INSURANCE: "insurance",
}

# Access values at or below this need an approved token to book
APPROVAL_REQUIRED_MAX = 2
# Access value that grants approval rights
APPROVER_ACCESS = 4

class UserRecord(BaseModel):
    """User document"""
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    id: str
    type: Optional[str] = None
    agency_id: Optional[str] = None
    access_level: Optional[str] = None
    currency: Optional[str] = None
    status: Optional[str] = None
    first_name: Optional[str] = ""
    last_name: Optional[str] = ""
    email: Optional[str] = None
    # Parent company account of a sub-agent
    parent_id: Optional[str] = None
    password_hash: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def has_admin_marker(self) -> bool:
        """Staff accounts of the platform owner carry "admin" in their ids"""
        return "admin" in self.id.lower() or "admin" in (self.agency_id or "").lower()

    @property
    def is_admin(self) -> bool:
        return self.type in {t.value for t in ADMIN_TYPES}

class AgencyRecord(BaseModel):
    """Agency document"""
    model_config = ConfigDict(extra="allow")

    id: str
    masteragent_id: Optional[str] = None
    company_name: Optional[str] = None
    email: Optional[str] = None
    mobile_no: Optional[str] = None
    brand_logo: Optional[str] = None
    address_1: Optional[str] = None
    address_2: Optional[str] = None
    city_name: Optional[str] = None
    region_name: Optional[str] = None
    country: Optional[str] = None

class AccessLevelRecord(BaseModel):
    """Access level document with one permission value per category"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    created_by: Optional[str] = None
    is_shared_wallet: bool = Field(False, alias="isSharedWallet")
    airline: Optional[int] = None
    hotel: Optional[int] = None
    bus: Optional[int] = None
    ferry: Optional[int] = None
    attractions: Optional[int] = None
    visa: Optional[int] = None
    holiday: Optional[int] = None
    insurance: Optional[int] = None

    def value_for(self, transaction_type: TransactionType) -> Optional[int]:
        field = ACCESS_CATEGORY.get(TransactionType(transaction_type))
        return getattr(self, field) if field else None

class Approver(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
