from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, status

from attractions.auth.dependencies import get_current_user_id
from attractions.accounts.service import AccountService
from attractions.catalogue.service import CatalogueService
from attractions.dependencies import get_accounts, get_catalogue
from attractions.exceptions import InvalidRequest
from attractions.responses import send_response

router = APIRouter()

async def request_params(request: Request) -> Dict[str, Any]:
    """Query string merged with a JSON body, body values winning"""
    params: Dict[str, Any] = dict(request.query_params)
    if request.method != "GET" and await request.body():
        try:
            body = await request.json()
        except ValueError:
            raise InvalidRequest("Request body must be JSON")
        if isinstance(body, dict):
            params.update(body)
    return params

@router.get("/get_products")
async def get_products(
    params: Dict[str, Any] = Depends(request_params),
    catalogue: CatalogueService = Depends(get_catalogue),
):
    results = await catalogue.get_products(params)
    return send_response(True, status.HTTP_200_OK, "Successfully fetched event packages.", results)

@router.get("/get_product_options")
@router.get("/get_product_options/{product_id}")
async def get_product_options(
    product_id: Optional[str] = None,
    params: Dict[str, Any] = Depends(request_params),
    catalogue: CatalogueService = Depends(get_catalogue),
):
    results = await catalogue.get_product_options(product_id or params.get("id"))
    return send_response(True, status.HTTP_200_OK, "Successfully fetched product options.", results)

@router.get("/get_product_info")
@router.get("/get_product_info/{product_id}")
async def get_product_info(
    product_id: Optional[str] = None,
    params: Dict[str, Any] = Depends(request_params),
    user_id: Optional[str] = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_accounts),
    catalogue: CatalogueService = Depends(get_catalogue),
):
    """Product details in the signed-in user's currency"""
    user = await accounts.get_user(user_id) if user_id else None
    results = await catalogue.get_product_info(
        product_id or params.get("id"), user.currency if user else None
    )
    return send_response(True, status.HTTP_200_OK, "Successfully fetched product info.", results)

@router.get("/get_event_dates")
async def get_event_dates(
    params: Dict[str, Any] = Depends(request_params),
    catalogue: CatalogueService = Depends(get_catalogue),
):
    results = await catalogue.get_event_dates(params)
    return send_response(True, status.HTTP_200_OK, "Successfully fetched event dates.", results)

@router.get("/get_event_availability")
async def get_event_availability(
    params: Dict[str, Any] = Depends(request_params),
    catalogue: CatalogueService = Depends(get_catalogue),
):
    results = await catalogue.check_event_availability(params)
    return send_response(True, status.HTTP_200_OK, "Successfully checked event availability.", results)

@router.get("/get_event_unavailabledates")
async def get_event_unavailable_dates(
    params: Dict[str, Any] = Depends(request_params),
    catalogue: CatalogueService = Depends(get_catalogue),
):
    results = await catalogue.get_unavailable_dates(params)
    return send_response(True, status.HTTP_200_OK, "Successfully fetched unavailable dates.", results)

@router.get("/check_event_changes")
async def check_event_changes(
    params: Dict[str, Any] = Depends(request_params),
    catalogue: CatalogueService = Depends(get_catalogue),
):
    results = await catalogue.get_product_changes(params)
    return send_response(True, status.HTTP_200_OK, "Successfully checked event changes.", results)

@router.get("/get_balance")
async def get_balance(catalogue: CatalogueService = Depends(get_catalogue)):
    """Reseller credit held with the vendor"""
    results = await catalogue.get_balance()
    return send_response(True, status.HTTP_200_OK, "Successfully fetched balance.", results)
