from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError as PydanticValidationError

from seccheck.api.deps import get_lead_query_service, get_lead_status_service
from seccheck.core.exceptions import ValidationError
from seccheck.dependencies import format_validation_errors
from seccheck.schemas.common import DiscountFilter
from seccheck.schemas.lead import (
    LeadDetail,
    LeadFilters,
    LeadSummary,
    StatusUpdate,
    StatusUpdateResponse,
)
from seccheck.services.lead_query_service import LeadQueryService
from seccheck.services.lead_status_service import LeadStatusService

router = APIRouter(prefix="/leads", tags=["Leads"])

ALL = "all"


def build_filters(
    date_from: Optional[str],
    date_to: Optional[str],
    status: Optional[str],
    risk: Optional[str],
    discount: Optional[str],
) -> LeadFilters:
    """Turn dashboard query parameters into :class:`LeadFilters`.

    Empty values and ``all`` mean "no filter".
    """

    def given(value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip() or value.strip().lower() == ALL:
            return None
        return value.strip()

    raw = {
        "date_from": given(date_from),
        "date_to": given(date_to),
        "status": given(status),
        "risk": given(risk),
    }
    discount_value = given(discount)
    if discount_value is not None:
        try:
            raw["discount"] = DiscountFilter(discount_value.lower()) == DiscountFilter.yes
        except ValueError:
            raise ValidationError(
                f"discount: expected yes, no or all, got {discount_value!r}"
            )
    try:
        return LeadFilters.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError(format_validation_errors(exc)) from exc


@router.get("", response_model=List[LeadSummary])
async def list_leads(
    date_from: Optional[str] = Query(None, alias="from", description="YYYY-MM-DD, inclusive"),
    date_to: Optional[str] = Query(None, alias="to", description="YYYY-MM-DD, inclusive"),
    status: Optional[str] = Query(None, description="new, done or all"),
    risk: Optional[str] = Query(None, description="low, medium, high or all"),
    discount: Optional[str] = Query(None, description="yes, no or all"),
    service: LeadQueryService = Depends(get_lead_query_service),
) -> List[LeadSummary]:
    """Admin listing, newest first, every lead with its resolved score."""
    filters = build_filters(date_from, date_to, status, risk, discount)
    return await service.list_leads(filters)


@router.get("/{lead_id}", response_model=LeadDetail)
async def get_lead(
    lead_id: str,
    service: LeadQueryService = Depends(get_lead_query_service),
) -> LeadDetail:
    """A lead with its answers and score."""
    return await service.get_lead_detail(lead_id)


@router.post("/{lead_id}/status", response_model=StatusUpdateResponse)
async def set_status(
    lead_id: str,
    body: StatusUpdate,
    service: LeadStatusService = Depends(get_lead_status_service),
) -> StatusUpdateResponse:
    """Mark a lead as ``done`` or reopen it as ``new``."""
    lead = await service.set_status(lead_id, body.status)
    return StatusUpdateResponse(lead_id=lead.id, status=lead.status)
