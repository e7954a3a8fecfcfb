"""
Citizen endpoints - trust summary shown before a citizen submits.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from civic_triage.models.trust import TrustMetadata
from civic_triage.services.triage_router import TriageRouter, get_triage_router
from civic_triage.services.trust_store import CitizenNotFound, StoreFailure

router = APIRouter(prefix="/citizens", tags=["Citizens"])


@router.get("/{citizen_id}/trust", response_model=TrustMetadata)
async def get_citizen_trust(citizen_id: str, triage: TriageRouter = Depends(get_triage_router)):
    """
    Trust level, daily quota and today's usage for a citizen.

    Raises:
        404: Citizen not found
        500: Store failure
    """
    try:
        return triage.get_trust_metadata(citizen_id)
    except CitizenNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreFailure:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read citizen trust"
        )
