from fastapi import APIRouter

from seccheck.schemas.score import ScoreRequest, ScoreResponse
from seccheck.services.scoring import normalize_answers, score

router = APIRouter(prefix="/score", tags=["Scoring"])


@router.post("", response_model=ScoreResponse)
async def score_answers(body: ScoreRequest) -> ScoreResponse:
    """Score an AnswerSet without storing anything."""
    answered = sum(1 for value in normalize_answers(body.answers).values() if value)
    return ScoreResponse.from_result(score(body.answers), answered_questions=answered)
