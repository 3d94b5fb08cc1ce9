"""Score schemas: the ScoreResult value object and the scoring endpoint I/O."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Self

from seccheck.core.constants import (
    SCORE_CAP_AWARENESS,
    SCORE_CAP_VPN,
    SCORE_CAP_WEB,
)
from seccheck.schemas.common import RiskLevel

AnswerValue = Union[str, int, float, bool, List[Any], None]


class ScoreResult(BaseModel):
    """Sub-scores, percentage total and risk classification of an AnswerSet.

    The model is frozen and self-checking: ``score_total`` must equal the
    percentage derived from the sub-scores and ``risk_level`` must equal
    the classification of ``score_total``.  A persisted score row that
    fails either check is treated as structurally incompatible and gets
    recomputed from the answers.
    """

    model_config = ConfigDict(frozen=True)

    score_vpn: float = Field(..., ge=0, le=SCORE_CAP_VPN)
    score_web: float = Field(..., ge=0, le=SCORE_CAP_WEB)
    score_awareness: float = Field(..., ge=0, le=SCORE_CAP_AWARENESS)
    score_total: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel

    @model_validator(mode="after")
    def validate_derived_fields(self) -> Self:
        from seccheck.services.scoring import (
            classify_risk,
            percentage_total,
            round_half_up,
        )

        for name in ("score_vpn", "score_web", "score_awareness"):
            value = getattr(self, name)
            if round_half_up(value, 2) != value:
                raise ValueError(f"{name} ({value}) is not rounded to 2 decimals")

        expected_total = percentage_total(
            self.score_vpn, self.score_web, self.score_awareness
        )
        if self.score_total != expected_total:
            raise ValueError(
                f"score_total ({self.score_total}) does not match sub-scores "
                f"(expected {expected_total})"
            )
        if self.risk_level != classify_risk(self.score_total):
            raise ValueError(
                f"risk_level ({self.risk_level.value}) does not match "
                f"score_total ({self.score_total})"
            )
        return self


class ScoreRequest(BaseModel):
    """Request body for POST /api/v1/score."""

    answers: Dict[str, AnswerValue] = Field(default_factory=dict)


class ScoreResponse(ScoreResult):
    """Response body of POST /api/v1/score."""

    answered_questions: int = Field(0, ge=0)

    @classmethod
    def from_result(
        cls, result: ScoreResult, answered_questions: Optional[int] = 0
    ) -> "ScoreResponse":
        return cls(**result.model_dump(), answered_questions=answered_questions or 0)
