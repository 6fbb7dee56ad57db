from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, status

from attractions.accounts.schemas import UserRecord
from attractions.auth.dependencies import get_current_user, get_current_user_id
from attractions.bookings.hydration import HydrationService
from attractions.bookings.orchestrator import BookingOrchestrator
from attractions.catalogue.router import request_params
from attractions.dependencies import get_hydration, get_orchestrator
from attractions.exceptions import Forbidden
from attractions.responses import send_response

router = APIRouter()

@router.post("/create_transaction")
async def create_transaction(
    payload: Dict[str, Any] = Body(...),
    user_id: Optional[str] = Depends(get_current_user_id),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """Book tickets and debit the caller's wallet"""
    output = await orchestrator.create_transaction(user_id, payload, payload.get("approval_id"))
    return send_response(True, status.HTTP_200_OK, "Transaction created successfully", output)

@router.get("/cancel_transaction")
@router.post("/cancel_transaction")
async def cancel_transaction(
    params: Dict[str, Any] = Depends(request_params),
    current_user: UserRecord = Depends(get_current_user),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    results = await orchestrator.cancel_transaction(params.get("reference_number"))
    return send_response(True, status.HTTP_200_OK, "Transaction cancelled successfully.", results)

@router.post("/hydrate_transactions")
async def hydrate_transactions(
    payload: Optional[Dict[str, Any]] = Body(None),
    current_user: UserRecord = Depends(get_current_user),
    hydration: HydrationService = Depends(get_hydration),
):
    """Reprocess stored transactions in batches (administrators only)"""
    if not current_user.is_admin:
        raise Forbidden("Unauthorized: Only administrators can hydrate transactions")

    batches = await hydration.hydrate(hydration.parse(payload or {}))
    return send_response(True, status.HTTP_200_OK, "Transaction hydration completed successfully", {
        "batches": len(batches),
        "totalDocuments": sum(len(batch["processedIds"]) for batch in batches),
    })
