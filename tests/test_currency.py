import pytest

from attractions.cache import TTLCache
from attractions.currency.service import CurrencyService, RoundingPolicy, round_currency
from attractions.exceptions import CurrencyConversionError
from tests.conftest import RATES_PATH, vendor_booking_body


@pytest.mark.parametrize("amount, currency, policy, expected", [
    (10.001, "PHP", RoundingPolicy.CEILING, 10.01),
    (10.000000001, "PHP", RoundingPolicy.CEILING, 10.01),
    (0.1, "PHP", RoundingPolicy.CEILING, 0.1),
    (10.0, "PHP", RoundingPolicy.CEILING, 10.0),
    (10.005, "PHP", RoundingPolicy.HALF_UP, 10.01),
    (10.004, "PHP", RoundingPolicy.HALF_UP, 10.0),
    (1234.1, "JPY", RoundingPolicy.HALF_UP, 1235.0),
    (1234.0, "KRW", RoundingPolicy.CEILING, 1234.0),
])
def test_round_currency(amount, currency, policy, expected) -> None:
    assert round_currency(amount, currency, policy) == expected


@pytest.fixture
def currency(http, clock):
    return CurrencyService(http, TTLCache(clock=clock), markup=0.02, cache_ttl=3600)


async def test_rate_includes_markup_and_is_cached(currency, upstream, clock) -> None:
    assert await currency.get_rate("SGD", "PHP") == pytest.approx(42.84)
    assert await currency.get_rate("SGD", "PHP") == pytest.approx(42.84)
    assert len(upstream.calls_to(RATES_PATH)) == 1

    request = upstream.calls_to(RATES_PATH)[0]
    assert request.url.params["from"] == "SGD"
    assert request.url.params["to"] == "PHP"
    assert request.url.params["access_key"] == "rates-key"

    clock.advance(3601)
    await currency.get_rate("SGD", "PHP")
    assert len(upstream.calls_to(RATES_PATH)) == 2


async def test_rate_api_failure(currency, upstream) -> None:
    upstream.on(RATES_PATH, {"success": False, "error": {"code": 101}})

    with pytest.raises(CurrencyConversionError, match="Unable to fetch currency exchange rate"):
        await currency.get_rate("SGD", "PHP")


async def test_rate_api_http_error(currency, upstream) -> None:
    upstream.on(RATES_PATH, {"message": "down"}, status_code=503)

    with pytest.raises(CurrencyConversionError):
        await currency.get_rate("SGD", "PHP")


async def test_convert_same_currency_makes_no_call(currency, upstream) -> None:
    assert await currency.convert(12.5, "PHP", "PHP") == 12.5
    assert upstream.calls == []


async def test_convert_booking_response(currency) -> None:
    response = vendor_booking_body()

    converted = await currency.convert_booking_response(response, "PHP", RoundingPolicy.HALF_UP)

    data = converted["data"]
    assert data["currency"] == "PHP"
    assert data["amount"] == 428.4
    assert data["tickets"][0]["price"] == 214.2
    assert data["tickets"][0]["totalPrice"] == 428.4
    assert data["reference_number"] == "GT-REF-1"
    # input untouched
    assert response["data"]["currency"] == "SGD"


async def test_convert_booking_response_in_target_currency(currency, upstream) -> None:
    response = vendor_booking_body()
    response["data"]["currency"] = "PHP"

    assert await currency.convert_booking_response(response, "PHP") == response
    assert upstream.calls == []


async def test_convert_product_info_rounds_up(currency, upstream) -> None:
    upstream.on(RATES_PATH, {"success": True, "info": {"rate": 0.3333}})
    response = {"success": True, "data": {"currency": "SGD", "originalPrice": 10, "fromPrice": 7}}

    converted = await currency.convert_product_info(response, "USD")

    # 10 * 0.339966 = 3.39966
    assert converted["data"]["originalPrice"] == 3.4
    assert converted["data"]["fromPrice"] == 2.38
    assert converted["data"]["currency"] == "USD"
