import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from seccheck.core.exceptions import ValidationError
from seccheck.dependencies import LeadValidator
from seccheck.repositories.answer_repository import AnswerRepository
from seccheck.repositories.base import utcnow
from seccheck.repositories.lead_repository import LeadRepository
from seccheck.repositories.score_repository import ScoreRepository
from seccheck.schemas.lead import SubmissionResult
from seccheck.services.locale import detect_language
from seccheck.services.scoring import normalize_answers, score

logger = logging.getLogger(__name__)


def as_answer_mapping(answers: Any) -> Dict[str, Any]:
    """Accept answers as a mapping or as ``[{question_key, answer_value}]``."""
    if answers is None:
        return {}
    if isinstance(answers, Mapping):
        return dict(answers)
    if isinstance(answers, (list, tuple)):
        mapping: Dict[str, Any] = {}
        for item in answers:
            if not isinstance(item, Mapping):
                raise ValidationError("answers: list items must be objects")
            key = item.get("question_key", item.get("key"))
            if key is None:
                raise ValidationError("answers: list item without question_key")
            mapping[str(key)] = item.get("answer_value", item.get("value"))
        return mapping
    raise ValidationError("answers: expected an object or a list")


class LeadIntakeService:
    """Orchestrates a questionnaire submission.

    The lead row is the only write that must succeed; answers and the
    score are stored best-effort afterwards and their outcomes are
    reported on the returned :class:`SubmissionResult`.
    """

    def __init__(
        self,
        lead_repo: LeadRepository,
        answer_repo: AnswerRepository,
        score_repo: ScoreRepository,
    ) -> None:
        self._lead_repo = lead_repo
        self._answer_repo = answer_repo
        self._score_repo = score_repo

    async def submit_lead(
        self,
        attributes: Dict[str, Any],
        answers: Any = None,
        accept_language: Optional[str] = None,
    ) -> SubmissionResult:
        """Store a submission and return its id, score and write outcomes.

        Raises:
            ValidationError: company name, contact name or a valid email
                is missing.
            StorageError: the lead itself could not be stored.
        """
        # 1. Validate contact data and answers shape before touching storage
        submission = LeadValidator.validate_submission(attributes)
        normalized = normalize_answers(as_answer_mapping(answers))

        record = submission.model_dump()
        locale = detect_language(record, accept_language)
        now = utcnow()

        # 2. Authoritative write, committed on its own
        lead_id = await self._lead_repo.create(record, locale=locale, now=now)

        # 3. Best-effort auxiliary writes
        answers_write = await self._answer_repo.insert_many(lead_id, normalized, now=now)

        # Scored from the normalised answers so a later recomputation from
        # the stored rows yields the same result
        result = score(normalized)
        score_write = await self._score_repo.upsert(lead_id, result, now=now)

        submission_result = SubmissionResult(
            lead_id=lead_id,
            score=result,
            answers_write=answers_write,
            score_write=score_write,
        )
        if submission_result.degraded:
            logger.warning(
                "Lead %s stored with degraded persistence (answers=%s, score=%s)",
                lead_id,
                answers_write.status.value,
                score_write.status.value,
            )
        else:
            logger.info(
                "Lead %s submitted: total=%d risk=%s",
                lead_id,
                result.score_total,
                result.risk_level.value,
            )
        return submission_result
