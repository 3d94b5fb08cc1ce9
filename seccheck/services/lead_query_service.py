import logging
from typing import Dict, List, Mapping, Optional, Tuple

from seccheck.core.exceptions import LeadNotFoundError
from seccheck.repositories.answer_repository import AnswerRepository
from seccheck.repositories.lead_repository import LeadRepository
from seccheck.repositories.score_repository import ScoreRepository
from seccheck.schemas.common import ScoreSource
from seccheck.schemas.lead import (
    LeadDetail,
    LeadFilters,
    LeadRecord,
    LeadSummary,
    ResultLead,
    ResultView,
)
from seccheck.schemas.score import ScoreResult
from seccheck.services.scoring import EMPTY_SCORE, score

logger = logging.getLogger(__name__)


def resolve_score(
    persisted: Optional[ScoreResult], answers: Optional[Mapping[str, str]]
) -> Tuple[ScoreResult, ScoreSource]:
    """Pick the score a lead is shown with.

    A compatible persisted score wins; otherwise the stored answers are
    scored again (no answers at all gives the zero-answer result).
    """
    if persisted is not None:
        return persisted, ScoreSource.persisted
    if not answers:
        return EMPTY_SCORE, ScoreSource.computed
    return score(answers), ScoreSource.computed


class LeadQueryService:
    """Read side: lead detail, admin listing and the public result view."""

    def __init__(
        self,
        lead_repo: LeadRepository,
        answer_repo: AnswerRepository,
        score_repo: ScoreRepository,
    ) -> None:
        self._lead_repo = lead_repo
        self._answer_repo = answer_repo
        self._score_repo = score_repo

    async def get_lead_detail(self, lead_id: str) -> LeadDetail:
        lead = await self._require_lead(lead_id)
        answers, scores = await self._load_aux([lead.id])
        lead_answers = answers.get(lead.id, {})
        result, source = resolve_score(scores.get(lead.id), lead_answers)
        return LeadDetail(
            lead=lead, answers=lead_answers, score=result, score_source=source
        )

    async def list_leads(self, filters: Optional[LeadFilters] = None) -> List[LeadSummary]:
        """List leads newest first; the risk filter applies to resolved scores."""
        filters = filters or LeadFilters()
        leads = await self._lead_repo.list(filters)
        if not leads:
            return []

        answers, scores = await self._load_aux([lead.id for lead in leads])
        summaries: List[LeadSummary] = []
        for lead in leads:
            result, source = resolve_score(scores.get(lead.id), answers.get(lead.id))
            if filters.risk is not None and result.risk_level != filters.risk:
                continue
            summaries.append(self._summary(lead, result, source))
        logger.debug("Listed %d of %d leads", len(summaries), len(leads))
        return summaries

    async def get_result(self, lead_id: str) -> ResultView:
        """PII-free view of a lead for the public result page."""
        lead = await self._require_lead(lead_id)
        answers, scores = await self._load_aux([lead.id])
        lead_answers = answers.get(lead.id, {})
        result, _ = resolve_score(scores.get(lead.id), lead_answers)
        public = ResultLead(
            **{name: getattr(lead, name) for name in ResultLead.model_fields}
        )
        return ResultView(lead=public, answers=lead_answers, score=result)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _require_lead(self, lead_id: str) -> LeadRecord:
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        return lead

    async def _load_aux(
        self, lead_ids: List[str]
    ) -> Tuple[Dict[str, Dict[str, str]], Dict[str, ScoreResult]]:
        answers = await self._answer_repo.get_for_leads(lead_ids)
        scores = await self._score_repo.get_for_leads(lead_ids)
        return answers, scores

    @staticmethod
    def _summary(
        lead: LeadRecord, result: ScoreResult, source: ScoreSource
    ) -> LeadSummary:
        data = lead.model_dump()
        data.update(
            score_total=result.score_total,
            risk_level=result.risk_level,
            score_source=source,
        )
        return LeadSummary(**data)
