import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from fastapi.responses import HTMLResponse

from attractions.approvals.schemas import ApprovalStatus
from attractions.approvals.service import ApprovalService
from attractions.auth.dependencies import get_current_user_id
from attractions.bookings.orchestrator import BookingOrchestrator
from attractions.dependencies import get_approval_service, get_orchestrator
from attractions.exceptions import AttractionsError
from attractions.notifications.templates import decision_page
from attractions.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/request_booking_approval")
async def request_booking_approval(
    request: Request,
    token: Optional[str] = Query(None, alias="hash"),
    payload: Dict[str, Any] = Body(...),
    user_id: Optional[str] = Depends(get_current_user_id),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """Send a booking to the caller's approvers"""
    result = await orchestrator.request_approval(
        user_id, token, payload, host=request.headers.get("x-forwarded-host") or request.headers.get("host")
    )
    return send_response(
        True, status.HTTP_200_OK, "Booking approval request sent successfully", result.model_dump()
    )

@router.get("/approve_booking_request", response_class=HTMLResponse)
async def approve_booking_request(
    token: Optional[str] = Query(None, alias="hash"),
    approvals: ApprovalService = Depends(get_approval_service),
):
    """Approver link target; marks the request approved"""
    return await _decide(approvals.approve, token, ApprovalStatus.APPROVED)

@router.get("/reject_booking_request", response_class=HTMLResponse)
async def reject_booking_request(
    token: Optional[str] = Query(None, alias="hash"),
    approvals: ApprovalService = Depends(get_approval_service),
):
    """Approver link target; marks the request rejected"""
    return await _decide(approvals.reject, token, ApprovalStatus.REJECTED)

async def _decide(action, token: Optional[str], decision: ApprovalStatus) -> HTMLResponse:
    if not token:
        return HTMLResponse(decision_page("Invalid link", "Hash is required"), status_code=status.HTTP_400_BAD_REQUEST)

    try:
        record = await action(token)
    except AttractionsError as e:
        logger.info("Approval decision refused: %s", e.message)
        return HTMLResponse(decision_page("Invalid link", e.message), status_code=status.HTTP_400_BAD_REQUEST)

    if record.status != decision:
        current = ApprovalStatus(record.status).name.lower()
        return HTMLResponse(decision_page(
            "Request already decided", f"Booking request {record.id} was already {current}."
        ))

    verb = "approved" if decision == ApprovalStatus.APPROVED else "rejected"
    return HTMLResponse(decision_page(f"Booking request {verb}", f"Booking request {record.id} has been {verb}."))
