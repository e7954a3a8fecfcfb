"""
Report endpoints - submission, retrieval and staff status updates.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from civic_triage.core.settings import settings
from civic_triage.models.report import (
    ReportActionRequest,
    ReportCreate,
    ReportRecord,
    StatusUpdateRequest,
    SubmissionRejected,
    TransitionResponse,
)
from civic_triage.models.trust import AdmissionPolicy
from civic_triage.services.admission_controller import RejectionReason, admission_policy_from_settings
from civic_triage.services.triage_router import ActorNotAllowed, TriageRouter, get_triage_router
from civic_triage.services.trust_store import CitizenNotFound, ReportNotFound, StoreFailure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])

REJECTION_STATUS_CODES = {
    RejectionReason.VERIFICATION_REQUIRED.value: status.HTTP_403_FORBIDDEN,
    RejectionReason.DAILY_LIMIT_REACHED.value: status.HTTP_429_TOO_MANY_REQUESTS,
}


def get_admission_policy() -> AdmissionPolicy:
    """Decide the gating mode once per request."""
    return admission_policy_from_settings(settings)


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_report(
    report: ReportCreate,
    policy: AdmissionPolicy = Depends(get_admission_policy),
    triage: TriageRouter = Depends(get_triage_router)
):
    """
    Submit a new citizen report.

    This endpoint:
    1. Checks verification and the citizen's trust-tier daily quota
    2. Stores the report as Pending, or Manual Review for LOW trust citizens
    3. Notifies staff (non-blocking)

    Returns 201 with the admission summary, or 403/429 with the rejection reason.
    """
    logger.info(f"📝 POST /reports - citizen={report.citizen_id or 'anonymous'}, category={report.category}")

    try:
        result = triage.submit(report, policy)
    except CitizenNotFound as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StoreFailure as e:
        logger.error(f"❌ POST /reports - store failure: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Report creation failed")

    if isinstance(result, SubmissionRejected):
        return JSONResponse(
            status_code=REJECTION_STATUS_CODES.get(result.reason, status.HTTP_400_BAD_REQUEST),
            content=result.model_dump(mode="json"),
        )

    return result


@router.get("/{report_id}", response_model=ReportRecord)
async def get_report(report_id: str, triage: TriageRouter = Depends(get_triage_router)):
    try:
        return triage.get_report(report_id)
    except ReportNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreFailure:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve report")


@router.patch("/{report_id}/status", response_model=TransitionResponse)
async def change_status(
    report_id: str,
    request: StatusUpdateRequest,
    triage: TriageRouter = Depends(get_triage_router)
):
    """
    Change report status (staff/admin only).

    Settles the citizen's trust ledger for this report:
    - In Progress / Resolved credit +1 once
    - Invalid penalizes -2 once (and withdraws a credit)
    - Moving back out of those states reverses the adjustment
    """
    return _run_transition(
        triage,
        report_id,
        request.actor_role,
        request.actor_id,
        new_status=request.status,
        message=request.remarks,
        actor_name=request.actor_name,
    )


@router.post("/{report_id}/actions", response_model=TransitionResponse)
async def report_action(
    report_id: str,
    request: ReportActionRequest,
    triage: TriageRouter = Depends(get_triage_router)
):
    """
    Combined action: update status and/or respond with a message.
    A message without a status is recorded as a department response.
    """
    return _run_transition(
        triage,
        report_id,
        request.actor_role,
        request.actor_id,
        new_status=request.status,
        message=request.message,
        actor_name=request.actor_name,
    )


def _run_transition(triage: TriageRouter, report_id: str, actor_role, actor_id, **kwargs) -> TransitionResponse:
    try:
        return triage.transition(report_id, actor_role, actor_id, **kwargs)
    except ActorNotAllowed as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ReportNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StoreFailure as e:
        logger.error(f"❌ Transition on report {report_id} failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update report")
