import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from seccheck.core.config import settings
from seccheck.core.exceptions import PurgeDisabledError, StorageError
from seccheck.repositories.answer_repository import AnswerRepository
from seccheck.repositories.lead_repository import LeadRepository
from seccheck.repositories.score_repository import ScoreRepository
from seccheck.schemas.lead import PurgeCounts

logger = logging.getLogger(__name__)


class LeadAdminService:
    """Maintenance operations that are switched off in production."""

    def __init__(
        self,
        lead_repo: LeadRepository,
        answer_repo: AnswerRepository,
        score_repo: ScoreRepository,
        enabled: Optional[bool] = None,
    ) -> None:
        self._lead_repo = lead_repo
        self._answer_repo = answer_repo
        self._score_repo = score_repo
        self._enabled = settings.ADMIN_PURGE_ENABLED if enabled is None else enabled

    async def purge(self) -> PurgeCounts:
        """Delete every answer, score and lead in one transaction."""
        if not self._enabled:
            raise PurgeDisabledError()

        try:
            counts = PurgeCounts(
                answers=await self._answer_repo.delete_all(),
                scores=await self._score_repo.delete_all(),
                leads=await self._lead_repo.delete_all(),
            )
            await self._lead_repo.commit()
        except SQLAlchemyError as exc:
            await self._lead_repo.rollback()
            logger.error("Purge failed", exc_info=True)
            raise StorageError("Could not purge leads") from exc

        logger.warning(
            "Purged %d leads, %d answers, %d scores",
            counts.leads,
            counts.answers,
            counts.scores,
        )
        return counts
