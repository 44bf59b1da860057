"""Lesson quiz API routes."""
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict

from lesson_quiz.api.deps import get_current_learner_id, get_quiz_engine
from lesson_quiz.domain.quiz.services import QuizAttemptEngine

router = APIRouter()


# Request/Response Models
class HeartsResponse(BaseModel):
    """Hearts response."""
    model_config = ConfigDict(from_attributes=True)

    hearts_remaining: int
    hearts_refill_at: Optional[datetime] = None


class QuestionResponse(BaseModel):
    """Client-safe question; carries no correct answer."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    question_type: str
    prompt: Optional[str] = None
    payload: dict
    explanation: Optional[str] = None
    points: Optional[int] = None
    order_index: Optional[int] = None
    media_url: Optional[str] = None
    template_version: int = 1


class QuizStateResponse(BaseModel):
    """Quiz state response."""
    model_config = ConfigDict(from_attributes=True)

    attempt_id: Optional[str] = None
    status: str
    question_index: int
    total_questions: int
    correct_count: int
    earned_score: int
    max_score: int
    current_question: Optional[QuestionResponse] = None
    hearts: HeartsResponse
    can_answer: bool
    can_restart: bool
    wrong_question_ids: List[str]


class AnswerRequest(BaseModel):
    """Answer submission."""
    attempt_id: str
    question_id: str
    response: Optional[dict[str, Any]] = None


class AnswerResponse(BaseModel):
    """Answer outcome response."""
    model_config = ConfigDict(from_attributes=True)

    attempt_id: str
    status: str
    correct: bool
    explanation: Optional[str] = None
    question_index: int
    total_questions: int
    correct_count: int
    earned_score: int
    max_score: int
    passed: bool
    completed: bool
    blocked_by_hearts: bool
    next_question: Optional[QuestionResponse] = None
    hearts: HeartsResponse
    wrong_question_ids: List[str]


class ProgressResponse(BaseModel):
    """Lesson progress metadata response."""
    model_config = ConfigDict(from_attributes=True)

    total_stops: int
    completed_stops: int
    current_stop_id: Optional[str] = None
    remaining_stops: int
    quiz_status: str
    hearts_remaining: int
    hearts_refill_at: Optional[datetime] = None
    next_stop_type: str


@router.get("/{lesson_id}/quiz/state", response_model=QuizStateResponse)
async def get_quiz_state(
    lesson_id: str,
    learner_id: str = Depends(get_current_learner_id),
    engine: QuizAttemptEngine = Depends(get_quiz_engine),
):
    """Get the learner's quiz state, opening an attempt when allowed."""
    state = await engine.get_state(learner_id, lesson_id)
    return QuizStateResponse.model_validate(state)


@router.post("/{lesson_id}/quiz/answer", response_model=AnswerResponse)
async def submit_quiz_answer(
    lesson_id: str,
    request: AnswerRequest,
    learner_id: str = Depends(get_current_learner_id),
    engine: QuizAttemptEngine = Depends(get_quiz_engine),
):
    """Submit an answer for the attempt's current question."""
    outcome = await engine.answer(
        learner_id,
        lesson_id,
        request.attempt_id,
        request.question_id,
        request.response,
    )
    return AnswerResponse.model_validate(outcome)


@router.post("/{lesson_id}/quiz/restart", response_model=QuizStateResponse)
async def restart_quiz(
    lesson_id: str,
    mode: Optional[str] = Query(None, description="wrong_only (default) or full"),
    learner_id: str = Depends(get_current_learner_id),
    engine: QuizAttemptEngine = Depends(get_quiz_engine),
):
    """Start a new attempt after a failed one."""
    state = await engine.restart(learner_id, lesson_id, mode)
    return QuizStateResponse.model_validate(state)


@router.get("/{lesson_id}/quiz/progress", response_model=ProgressResponse)
async def get_quiz_progress(
    lesson_id: str,
    learner_id: str = Depends(get_current_learner_id),
    engine: QuizAttemptEngine = Depends(get_quiz_engine),
):
    """Get lesson stops and where the learner stands."""
    metadata = await engine.get_progress_metadata(learner_id, lesson_id)
    return ProgressResponse.model_validate(metadata)
