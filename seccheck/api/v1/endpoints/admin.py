from fastapi import APIRouter, Depends

from seccheck.api.deps import get_lead_admin_service
from seccheck.schemas.lead import PurgeResponse
from seccheck.services.lead_admin_service import LeadAdminService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/purge", response_model=PurgeResponse)
async def purge(
    service: LeadAdminService = Depends(get_lead_admin_service),
) -> PurgeResponse:
    """Delete all leads, answers and scores (only when enabled)."""
    counts = await service.purge()
    return PurgeResponse(deleted=counts)
