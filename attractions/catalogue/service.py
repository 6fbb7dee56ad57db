"""
Read-only catalogue lookups.

Each call fetches a vendor token, forwards validated parameters and reshapes
the vendor body into ``{success, data, size, ...}``.
"""

import logging
from decimal import ROUND_CEILING, Decimal
from typing import Any, Dict, Optional

from attractions.catalogue.schemas import (
    AvailabilityQuery, EventDatesQuery, ProductChangesQuery, ProductListQuery,
    ProductOption, ProductSummary, UnavailableDatesQuery, parse_items
)
from attractions.currency.service import CurrencyService
from attractions.exceptions import InvalidRequest
from attractions.vendor.client import VendorClient
from attractions.vendor.session import VendorSessionManager

logger = logging.getLogger(__name__)


def _size(data: Any) -> int:
    return len(data) if isinstance(data, list) else 0


def _product_id(product_id: Any, message: str) -> int:
    try:
        value = int(str(product_id))
    except (TypeError, ValueError):
        value = 0
    if not value:
        raise InvalidRequest(message)
    return value


class CatalogueService:
    """Service for product and availability lookups"""

    def __init__(self, vendor: VendorClient, sessions: VendorSessionManager, currency: CurrencyService):
        self.vendor = vendor
        self.sessions = sessions
        self.currency = currency

    async def get_products(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = ProductListQuery.from_params(params)
        token = await self.sessions.get_token()
        body = await self.vendor.get_products(query.model_dump(exclude_none=True), token)

        products = parse_items(ProductSummary, body["data"])
        return {
            "success": True,
            "data": products,
            "size": len(products),
            "currency": products[0]["currency"] if products else "",
        }

    async def get_product_options(self, product_id: Any) -> Dict[str, Any]:
        product_id = _product_id(product_id, "ID is required")
        token = await self.sessions.get_token()
        body = await self.vendor.get_product_options(product_id, token)

        options = parse_items(ProductOption, body.get("data") or [])
        return {
            "success": True,
            "data": options,
            "size": len(options),
            "currency": options[0]["currency"] if options else "",
        }

    async def get_product_info(self, product_id: Any, user_currency: Optional[str] = None) -> Dict[str, Any]:
        """Product details, with prices in the user's currency when one is given"""
        product_id = _product_id(product_id, "Product ID is required")
        token = await self.sessions.get_token()
        body = await self.vendor.get_product_info(product_id, token)

        result = {
            "success": True,
            "data": body["data"],
            "size": body.get("size") or 0,
        }
        if user_currency and isinstance(body["data"], dict) and body["data"].get("currency") != user_currency:
            result = await self.currency.convert_product_info(result, user_currency)
        return result

    async def get_event_dates(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = EventDatesQuery.from_params(params)
        token = await self.sessions.get_token()
        body = await self.vendor.get_event_dates(query.model_dump(exclude_none=True), token)
        data = body.get("data") or []
        return {"success": True, "data": data, "size": _size(data)}

    async def check_event_availability(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = AvailabilityQuery.from_params(params)
        token = await self.sessions.get_token()
        body = await self.vendor.check_event_availability(query.model_dump(), token)
        data = body.get("data") or []
        return {"success": True, "data": data, "size": _size(data)}

    async def get_unavailable_dates(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = UnavailableDatesQuery.from_params(params)
        token = await self.sessions.get_token()
        body = await self.vendor.get_unavailable_dates(query.model_dump(), token)
        data = body.get("data") or []
        return {"success": True, "data": data, "size": _size(data)}

    async def get_product_changes(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = ProductChangesQuery.from_params(params)
        token = await self.sessions.get_token()
        body = await self.vendor.get_product_changes(query.model_dump(exclude_none=True), token)
        data = body.get("data") or []
        return {"success": True, "data": data, "size": _size(data)}

    async def get_balance(self) -> Dict[str, Any]:
        """Reseller credit held with the vendor, rounded up to cents"""
        token = await self.sessions.get_token()
        body = await self.vendor.get_balance(token)
        data = body.get("data") or {}

        balance = data.get("balance")
        if isinstance(balance, str):
            cleaned = "".join(ch for ch in balance if ch.isdigit() or ch == ".")
            try:
                balance = float(cleaned)
            except ValueError:
                balance = 0.0
        else:
            balance = float(balance or 0)

        rounded = Decimal(repr(balance)).quantize(Decimal("0.01"), rounding=ROUND_CEILING)
        return {"currency": data.get("currency"), "balance": float(rounded), "rate": None}
