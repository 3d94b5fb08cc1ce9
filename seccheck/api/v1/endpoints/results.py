from fastapi import APIRouter, Depends

from seccheck.api.deps import get_lead_query_service
from seccheck.schemas.lead import ResultView
from seccheck.services.lead_query_service import LeadQueryService

router = APIRouter(prefix="/result", tags=["Results"])


@router.get("/{lead_id}", response_model=ResultView)
async def get_result(
    lead_id: str,
    service: LeadQueryService = Depends(get_lead_query_service),
) -> ResultView:
    """Public result page data; contact details are never included."""
    return await service.get_result(lead_id)
