import logging
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from seccheck.core.config import settings
from seccheck.core.constants import ALLOWED_TRANSITIONS, LEAD_STATUSES
from seccheck.core.database import get_db
from seccheck.core.exceptions import InvalidStatusError, ValidationError
from seccheck.schemas.common import LeadStatus
from seccheck.schemas.lead import LeadSubmission

logger = logging.getLogger(__name__)


def format_validation_errors(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into ``"field: message; ..."``."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error.get("loc", ())) or "body"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


class LeadValidator:
    """Validation logic for leads shared by the services."""

    @staticmethod
    def validate_submission(attributes: Dict[str, Any]) -> LeadSubmission:
        """Check the contact data of a submission.

        Company name, contact name and a syntactically valid email are
        mandatory; everything else is optional.
        """
        try:
            return LeadSubmission.model_validate(attributes)
        except PydanticValidationError as exc:
            raise ValidationError(format_validation_errors(exc)) from exc

    @staticmethod
    def validate_status(status: Any) -> LeadStatus:
        """Accept only the exact lifecycle values; nothing is coerced."""
        if not isinstance(status, str) or status not in LEAD_STATUSES:
            raise InvalidStatusError(
                f"Invalid status {status!r}; expected one of "
                f"{', '.join(sorted(LEAD_STATUSES))}"
            )
        return LeadStatus(status)

    @staticmethod
    async def validate_status_transition(
        current_status: str, new_status: LeadStatus
    ) -> None:
        """Validate status transitions using the single source of truth.

        Rows carrying a status this service never writes (legacy data) may
        move to any valid status.
        """
        allowed = ALLOWED_TRANSITIONS.get(current_status, sorted(LEAD_STATUSES))
        if new_status.value not in allowed:
            raise InvalidStatusError(
                f"Cannot transition from {current_status} to {new_status.value}"
            )


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> AsyncGenerator[Optional[Redis], None]:
    """Yield a per-request Redis client, or ``None`` when Redis is down.

    The client is closed once the request is finished.
    """
    client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except Exception:
        logger.warning("Redis unavailable – schema cache disabled for this request")
        await client.aclose()
        yield None
        return

    try:
        yield client
    finally:
        await client.aclose()


# ---------------------------------------------------------------------------
# Cache service factory
# ---------------------------------------------------------------------------


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
):
    """Build a :class:`CacheService` backed by the per-request Redis client."""
    from seccheck.core.cache import CacheService

    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_schema_repo(
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache_service),
):
    from seccheck.repositories.schema_repository import SchemaRepository

    return SchemaRepository(db, cache=cache)


async def get_lead_repo(
    db: AsyncSession = Depends(get_db),
    schema=Depends(get_schema_repo),
):
    from seccheck.repositories.lead_repository import LeadRepository

    return LeadRepository(db, schema=schema)


async def get_answer_repo(
    db: AsyncSession = Depends(get_db),
    schema=Depends(get_schema_repo),
):
    from seccheck.repositories.answer_repository import AnswerRepository

    return AnswerRepository(db, schema=schema)


async def get_score_repo(
    db: AsyncSession = Depends(get_db),
    schema=Depends(get_schema_repo),
):
    from seccheck.repositories.score_repository import ScoreRepository

    return ScoreRepository(db, schema=schema)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_lead_intake_service(
    lead_repo=Depends(get_lead_repo),
    answer_repo=Depends(get_answer_repo),
    score_repo=Depends(get_score_repo),
):
    """Build a :class:`LeadIntakeService` with injected repositories."""
    from seccheck.services.lead_intake_service import LeadIntakeService

    return LeadIntakeService(
        lead_repo=lead_repo, answer_repo=answer_repo, score_repo=score_repo
    )


async def get_lead_query_service(
    lead_repo=Depends(get_lead_repo),
    answer_repo=Depends(get_answer_repo),
    score_repo=Depends(get_score_repo),
):
    """Build a :class:`LeadQueryService` with injected repositories."""
    from seccheck.services.lead_query_service import LeadQueryService

    return LeadQueryService(
        lead_repo=lead_repo, answer_repo=answer_repo, score_repo=score_repo
    )


async def get_lead_status_service(
    lead_repo=Depends(get_lead_repo),
):
    """Build a :class:`LeadStatusService` with injected repository."""
    from seccheck.services.lead_status_service import LeadStatusService

    return LeadStatusService(lead_repo=lead_repo)


async def get_lead_admin_service(
    lead_repo=Depends(get_lead_repo),
    answer_repo=Depends(get_answer_repo),
    score_repo=Depends(get_score_repo),
):
    """Build a :class:`LeadAdminService` with injected repositories."""
    from seccheck.services.lead_admin_service import LeadAdminService

    return LeadAdminService(
        lead_repo=lead_repo, answer_repo=answer_repo, score_repo=score_repo
    )
