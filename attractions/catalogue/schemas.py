from pydantic import BaseModel, ConfigDict, Field, ValidationError, validator
from typing import Any, Dict, List, Optional

from attractions.exceptions import InvalidRequest, VendorError

def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(str(value)))
    except (TypeError, ValueError):
        return default

def _to_float(value: Any) -> float:
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return 0.0

def _required(data: Dict[str, Any], *fields: str) -> None:
    for field in fields:
        if not data.get(field):
            raise InvalidRequest(f"Required field {field} is missing or has no value!")

# Query parameters
class ProductListQuery(BaseModel):
    countryId: Optional[int] = None
    cityIds: str = "all"
    categoryIds: str = "all"
    searchText: Optional[str] = None
    page: int = 1
    section: int = 0
    Lang: str = "EN"

    @classmethod
    def from_params(cls, data: Dict[str, Any]) -> "ProductListQuery":
        page = _to_int(data.get("page"), 1) or 1
        if page <= 0:
            raise InvalidRequest("Page number must be a positive number")
        return cls(
            countryId=_to_int(data["countryId"]) if data.get("countryId") else None,
            cityIds=str(data.get("cityIds") or "all"),
            categoryIds=str(data.get("categoryIds") or "all"),
            searchText=data.get("searchText") or None,
            page=page,
            section=_to_int(data.get("section"), 0),
            Lang=data.get("Lang") or "EN",
        )

class EventDatesQuery(BaseModel):
    optionID: int
    ticketTypeID: Optional[int] = None
    dateFrom: Optional[str] = None
    dateTo: Optional[str] = None

    @classmethod
    def from_params(cls, data: Dict[str, Any]) -> "EventDatesQuery":
        option_id = _to_int(data.get("optionID"))
        if not option_id:
            raise InvalidRequest("Required field optionID is missing or has no value!")
        return cls(
            optionID=option_id,
            ticketTypeID=_to_int(data["ticketTypeID"]) if data.get("ticketTypeID") else None,
            dateFrom=str(data["dateFrom"]) if data.get("dateFrom") else None,
            dateTo=str(data["dateTo"]) if data.get("dateTo") else None,
        )

class AvailabilityQuery(BaseModel):
    id: int
    date: str

    @classmethod
    def from_params(cls, data: Dict[str, Any]) -> "AvailabilityQuery":
        _required(data, "id", "date")
        return cls(id=_to_int(data["id"]), date=str(data["date"]))

class UnavailableDatesQuery(BaseModel):
    id: int
    date_from: str
    date_to: str

    @classmethod
    def from_params(cls, data: Dict[str, Any]) -> "UnavailableDatesQuery":
        _required(data, "id", "date_from", "date_to")
        return cls(id=_to_int(data["id"]), date_from=str(data["date_from"]), date_to=str(data["date_to"]))

class ProductChangesQuery(BaseModel):
    countryId: int
    dateFrom: str
    dateTo: str
    CityID: Optional[int] = None

    @classmethod
    def from_params(cls, data: Dict[str, Any]) -> "ProductChangesQuery":
        _required(data, "countryId", "dateFrom", "dateTo")
        return cls(
            countryId=_to_int(data["countryId"]),
            dateFrom=str(data["dateFrom"]),
            dateTo=str(data["dateTo"]),
            CityID=_to_int(data["CityID"]) if data.get("CityID") else None,
        )

# Vendor data
class Merchant(BaseModel):
    id: int = 0
    name: str = ""

    @validator("id", pre=True)
    def coerce_id(cls, v):
        return _to_int(v)

    @validator("name", pre=True)
    def coerce_name(cls, v):
        return v or ""

class ProductSummary(BaseModel):
    """Product list entry with vendor values coerced to fixed types"""
    model_config = ConfigDict(extra="ignore")

    id: int = 0
    name: str = ""
    country: str = ""
    city: str = ""
    category: str = ""
    currency: str = ""
    image: str = ""
    originalPrice: float = 0
    fromPrice: float = 0
    keywords: Optional[Any] = None
    fromReseller: Optional[Any] = None
    merchant: Merchant = Field(default_factory=Merchant)
    isGTRecommend: bool = False
    isOpenDated: bool = False
    isOwnContracted: bool = False
    isFavorited: bool = False
    isBestSeller: bool = False
    isInstantConfirmation: bool = False

    @validator("id", pre=True)
    def coerce_id(cls, v):
        return _to_int(v)

    @validator("originalPrice", "fromPrice", pre=True)
    def coerce_price(cls, v):
        return _to_float(v)

    @validator("name", "country", "city", "category", "currency", "image", pre=True)
    def empty_string(cls, v):
        return v or ""

    @validator(
        "isGTRecommend", "isOpenDated", "isOwnContracted", "isFavorited",
        "isBestSeller", "isInstantConfirmation", pre=True,
    )
    def truthy(cls, v):
        return bool(v)

    @validator("merchant", pre=True)
    def merchant_or_empty(cls, v):
        return v or {}

class TicketTypeSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int = 0
    sku: str = ""
    name: str = ""
    originalPrice: float = 0
    originalMerchantPrice: float = 0

    @validator("id", pre=True)
    def coerce_id(cls, v):
        return _to_int(v)

    @validator("originalPrice", "originalMerchantPrice", pre=True)
    def coerce_price(cls, v):
        return _to_float(v)

    @validator("sku", "name", pre=True)
    def empty_string(cls, v):
        return v or ""

class ProductOption(BaseModel):
    """Product option with its ticket types"""
    model_config = ConfigDict(extra="allow")

    id: int = 0
    name: str = ""
    description: str = ""
    currency: str = ""
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    ticketType: List[TicketTypeSummary] = Field(default_factory=list)
    isCancellable: bool = False

    @validator("id", pre=True)
    def coerce_id(cls, v):
        return _to_int(v)

    @validator("name", "description", "currency", pre=True)
    def empty_string(cls, v):
        return v or ""

    @validator("questions", "ticketType", pre=True)
    def list_or_empty(cls, v):
        return v if isinstance(v, list) else []

    @validator("isCancellable", pre=True)
    def truthy(cls, v):
        return bool(v)

def parse_items(model, items: List[Any]) -> List[Dict[str, Any]]:
    """Reshape vendor list items, rejecting anything that is not an object"""
    try:
        return [model(**item).model_dump() for item in items]
    except (TypeError, ValidationError) as e:
        raise VendorError(f"Unexpected item in vendor response: {e}")
