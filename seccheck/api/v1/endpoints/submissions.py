from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, Request

from seccheck.api.deps import get_lead_intake_service
from seccheck.core.config import settings
from seccheck.core.exceptions import ValidationError
from seccheck.core.rate_limit import limiter
from seccheck.schemas.lead import SubmitResponse
from seccheck.services.lead_intake_service import LeadIntakeService

router = APIRouter(tags=["Submissions"])


def split_payload(payload: Dict[str, Any]) -> tuple:
    """Separate lead attributes from answers.

    Older front-ends wrap everything in a ``formData`` object; both shapes
    are accepted.
    """
    if isinstance(payload.get("formData"), dict):
        payload = payload["formData"]
    attributes = dict(payload)
    answers = attributes.pop("answers", None)
    return attributes, answers


@router.post("/submit", response_model=SubmitResponse, status_code=201)
@limiter.limit(settings.SUBMIT_RATE_LIMIT)
async def submit(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    accept_language: Optional[str] = Header(None),
    service: LeadIntakeService = Depends(get_lead_intake_service),
) -> SubmitResponse:
    """Store a questionnaire submission and score it.

    Rate-limited per IP.  ``persistence`` is ``degraded`` when answers or
    the score could not be stored; the lead itself always is.
    """
    attributes, answers = split_payload(payload)
    if not attributes:
        raise ValidationError("Submission contains no lead data")
    result = await service.submit_lead(
        attributes, answers, accept_language=accept_language
    )
    return SubmitResponse.from_result(result)
