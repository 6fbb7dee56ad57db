"""
Currency normalization for vendor responses.

Rates come from the exchange-rate API, get a markup applied and are cached
per currency pair. Amounts are rounded per currency: JPY and KRW always round
up to whole units, everything else to two decimals under a ``RoundingPolicy``.
"""

import copy
import logging
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from attractions.cache import TTLCache
from attractions.config import settings
from attractions.exceptions import CurrencyConversionError

logger = logging.getLogger(__name__)

WHOLE_UNIT_CURRENCIES = {"JPY", "KRW"}


class RoundingPolicy(str, Enum):
    CEILING = "ceiling"
    HALF_UP = "half_up"


def round_currency(amount: float, currency: str, policy: RoundingPolicy = RoundingPolicy.HALF_UP) -> float:
    """Round an amount the way the given currency is displayed"""
    # repr() is the shortest decimal for the float: 0.1 becomes 0.1, not 0.1000000000000000055...
    # Real noise such as 10.000000001 is kept and still rounds up under CEILING.
    value = Decimal(repr(float(amount)))
    if currency in WHOLE_UNIT_CURRENCIES:
        return float(value.quantize(Decimal("1"), rounding=ROUND_CEILING))

    rounding = ROUND_CEILING if RoundingPolicy(policy) == RoundingPolicy.CEILING else ROUND_HALF_UP
    return float(value.quantize(Decimal("0.01"), rounding=rounding))


class CurrencyService:
    """Service for exchange rates and response conversion"""

    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: TTLCache,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        markup: Optional[float] = None,
        cache_ttl: Optional[int] = None,
    ):
        self.http = http
        self.cache = cache
        self.api_url = api_url or settings.EXCHANGERATE_API_URL
        self.api_key = api_key if api_key is not None else settings.EXCHANGERATE_API_KEY
        self.markup = settings.CURRENCY_MARKUP if markup is None else markup
        self.cache_ttl = cache_ttl or settings.CURRENCY_CACHE_TTL

    async def get_rate(self, from_currency: str, to_currency: str) -> float:
        """Exchange rate with markup, cached per currency pair"""
        cache_key = f"currency:{from_currency}:{to_currency}"
        cached = self.cache.get(cache_key)
        if cached:
            return cached

        params = {"access_key": self.api_key, "from": from_currency, "to": to_currency, "amount": 1}
        try:
            response = await self.http.get(self.api_url, params=params)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching exchange rate %s->%s: %s", from_currency, to_currency, e)
            raise CurrencyConversionError("Unable to fetch currency exchange rate") from e

        if not isinstance(body, dict):
            body = {}
        rate = (body.get("info") or {}).get("rate")
        if not body.get("success") or not rate:
            logger.error("Exchange rate API rejected %s->%s: %s", from_currency, to_currency, body)
            raise CurrencyConversionError("Unable to fetch currency exchange rate")

        rate_with_fee = rate + rate * self.markup
        self.cache.set(cache_key, rate_with_fee, self.cache_ttl)
        return rate_with_fee

    async def convert(
        self,
        amount: float,
        from_currency: str,
        to_currency: str,
        policy: RoundingPolicy = RoundingPolicy.HALF_UP,
    ) -> float:
        if from_currency == to_currency:
            return amount
        rate = await self.get_rate(from_currency, to_currency)
        return round_currency(amount * rate, to_currency, policy)

    async def convert_booking_response(
        self,
        response: Dict[str, Any],
        target_currency: str,
        policy: Optional[RoundingPolicy] = None,
    ) -> Dict[str, Any]:
        """Copy of a transaction response with its amounts in ``target_currency``"""
        if not response or not response.get("data"):
            return response

        policy = RoundingPolicy(policy or settings.BOOKING_ROUNDING)
        converted = copy.deepcopy(response)
        data = converted["data"]
        source = data.get("currency")
        if not source or source == target_currency:
            return converted

        rate = await self.get_rate(source, target_currency)
        data["currency"] = target_currency

        for field in ("amount", "totalAmount"):
            if data.get(field) is not None:
                data[field] = round_currency(data[field] * rate, target_currency, policy)

        for ticket in data.get("tickets") or []:
            for field in ("price", "totalPrice"):
                if ticket.get(field) is not None:
                    ticket[field] = round_currency(ticket[field] * rate, target_currency, policy)

        return converted

    async def convert_product_info(
        self,
        response: Dict[str, Any],
        target_currency: str,
        policy: Optional[RoundingPolicy] = None,
    ) -> Dict[str, Any]:
        """Copy of a product info response with prices in ``target_currency``"""
        if not response or not isinstance(response.get("data"), dict):
            return response

        policy = RoundingPolicy(policy or settings.PRODUCT_ROUNDING)
        converted = copy.deepcopy(response)
        data = converted["data"]
        source = data.get("currency")
        if not source or source == target_currency:
            return converted

        rate = await self.get_rate(source, target_currency)
        data["currency"] = target_currency
        for field in ("originalPrice", "fromPrice"):
            if data.get(field) is not None:
                data[field] = round_currency(data[field] * rate, target_currency, policy)

        return converted
