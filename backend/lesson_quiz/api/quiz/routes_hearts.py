"""Hearts API routes."""
from fastapi import APIRouter, Depends

from lesson_quiz.api.deps import get_current_learner_id, get_quiz_engine
from lesson_quiz.api.quiz.routes_quiz import HeartsResponse
from lesson_quiz.domain.quiz.services import QuizAttemptEngine

router = APIRouter()


@router.get("", response_model=HeartsResponse)
async def get_hearts(
    learner_id: str = Depends(get_current_learner_id),
    engine: QuizAttemptEngine = Depends(get_quiz_engine),
):
    """Get the learner's hearts, applying regeneration."""
    status = await engine.hearts_status(learner_id)
    return HeartsResponse.model_validate(status)
