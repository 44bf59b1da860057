"""Quiz domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from lesson_quiz.domain.common.types import clean_str, parse_datetime, parse_int

DEFAULT_QUESTION_POINTS = 10


class QuestionType(str, Enum):
    """Question type tag."""
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    CLOZE = "cloze"
    WORD_BANK = "word_bank"
    CONVERSATION = "conversation"
    MATCH_PAIRS = "match_pairs"
    SHORT_TEXT = "short_text"


class AttemptStatus(str, Enum):
    """Persisted attempt status."""
    IN_PROGRESS = "in_progress"
    PAUSED_NO_HEARTS = "paused_no_hearts"
    PASSED = "passed"
    FAILED = "failed"


ACTIVE_ATTEMPT_STATUSES = (AttemptStatus.IN_PROGRESS.value, AttemptStatus.PAUSED_NO_HEARTS.value)
TERMINAL_ATTEMPT_STATUSES = (AttemptStatus.PASSED.value, AttemptStatus.FAILED.value)


class QuizStatus(str, Enum):
    """Status shown to the learner (a superset of attempt status)."""
    LOCKED = "locked"
    AVAILABLE = "available"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    BLOCKED_HEARTS = "blocked_hearts"
    FAILED = "failed"


class NextStopType(str, Enum):
    """What the learner should open next."""
    SECTION = "section"
    QUIZ = "quiz"
    DONE = "done"


class RestartMode(str, Enum):
    """Which questions a restarted attempt covers."""
    WRONG_ONLY = "wrong_only"
    FULL = "full"


@dataclass(frozen=True)
class Question:
    """Authored quiz question."""
    id: str
    quiz_id: Optional[str]
    question_type: str
    question_text: Optional[str]
    options: dict
    correct_answer: Any
    points: Optional[int] = None
    order_index: Optional[int] = None
    explanation: Optional[str] = None
    media_url: Optional[str] = None
    template_version: int = 1

    @property
    def score_points(self) -> int:
        """Points this question is worth; unset or non-positive points count as the default."""
        if self.points is None or self.points < 1:
            return DEFAULT_QUESTION_POINTS
        return self.points

    @classmethod
    def from_row(cls, row: dict) -> "Question":
        question_type = clean_str(row.get("question_type"))
        options = row.get("options")
        return cls(
            id=clean_str(row.get("id")),
            quiz_id=clean_str(row.get("quiz_id")),
            question_type=(question_type or QuestionType.MULTIPLE_CHOICE.value).lower(),
            question_text=clean_str(row.get("question_text")),
            options=options if isinstance(options, dict) else {},
            correct_answer=row.get("correct_answer"),
            points=parse_int(row.get("points")),
            order_index=parse_int(row.get("order_index")),
            explanation=clean_str(row.get("explanation")),
            media_url=clean_str(row.get("media_url")),
            template_version=parse_int(row.get("template_version")) or 1,
        )


@dataclass(frozen=True)
class HeartsState:
    """A learner's lives and when they refill."""
    hearts_remaining: int
    refill_at: Optional[datetime]


@dataclass(frozen=True)
class GradeResult:
    """Outcome of grading one response."""
    correct: bool
    normalized_response: dict


@dataclass
class Attempt:
    """One learner pass through a quiz's question sequence."""
    id: str
    user_id: str
    lesson_id: str
    quiz_id: Optional[str]
    status: str
    current_question_index: int = 0
    correct_count: int = 0
    earned_score: int = 0
    max_score: int = 0
    answers: dict = field(default_factory=dict)
    question_ids: list[str] = field(default_factory=list)
    wrong_question_ids: list[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ATTEMPT_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ATTEMPT_STATUSES

    @classmethod
    def from_row(cls, row: dict) -> "Attempt":
        answers = row.get("answers")
        return cls(
            id=clean_str(row.get("id")),
            user_id=clean_str(row.get("user_id")),
            lesson_id=clean_str(row.get("lesson_id")),
            quiz_id=clean_str(row.get("quiz_id")),
            status=clean_str(row.get("status")) or AttemptStatus.IN_PROGRESS.value,
            current_question_index=parse_int(row.get("current_question_index")) or 0,
            correct_count=parse_int(row.get("correct_count")) or 0,
            earned_score=parse_int(row.get("earned_score")) or 0,
            max_score=parse_int(row.get("max_score")) or 0,
            answers={str(k): v for k, v in answers.items() if v is not None}
            if isinstance(answers, dict)
            else {},
            question_ids=_id_list(row.get("question_ids")),
            wrong_question_ids=_id_list(row.get("wrong_question_ids")),
            started_at=parse_datetime(row.get("started_at")),
            updated_at=parse_datetime(row.get("updated_at")),
            completed_at=parse_datetime(row.get("completed_at")),
        )


def _id_list(value: Any) -> list[str]:
    """De-duplicated list of non-blank ids, order preserved."""
    if not isinstance(value, (list, tuple)):
        return []
    ids: list[str] = []
    for item in value:
        item_id = clean_str(item)
        if item_id is not None and item_id not in ids:
            ids.append(item_id)
    return ids


@dataclass(frozen=True)
class QuestionView:
    """Client-safe question; never carries the correct answer."""
    id: str
    question_type: str
    prompt: Optional[str]
    payload: dict
    explanation: Optional[str]
    points: Optional[int]
    order_index: Optional[int]
    media_url: Optional[str]
    template_version: int


@dataclass(frozen=True)
class HeartsStatus:
    """Hearts as reported to the learner."""
    hearts_remaining: int
    hearts_refill_at: Optional[datetime]

    @classmethod
    def from_state(cls, state: HeartsState) -> "HeartsStatus":
        return cls(hearts_remaining=state.hearts_remaining, hearts_refill_at=state.refill_at)


@dataclass(frozen=True)
class QuizState:
    """Learner-facing quiz state."""
    attempt_id: Optional[str]
    status: str
    question_index: int
    total_questions: int
    correct_count: int
    earned_score: int
    max_score: int
    current_question: Optional[QuestionView]
    hearts: HeartsStatus
    can_answer: bool
    can_restart: bool
    wrong_question_ids: list[str]


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of submitting one answer."""
    attempt_id: str
    status: str
    correct: bool
    explanation: Optional[str]
    question_index: int
    total_questions: int
    correct_count: int
    earned_score: int
    max_score: int
    passed: bool
    completed: bool
    blocked_by_hearts: bool
    next_question: Optional[QuestionView]
    hearts: HeartsStatus
    wrong_question_ids: list[str]


@dataclass(frozen=True)
class ProgressMetadata:
    """Derived lesson progress combining sections and quiz state."""
    total_stops: int
    completed_stops: int
    current_stop_id: Optional[str]
    remaining_stops: int
    quiz_status: str
    hearts_remaining: int
    hearts_refill_at: Optional[datetime]
    next_stop_type: str
