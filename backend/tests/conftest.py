"""Pytest configuration for tests directory."""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest

from lesson_quiz.domain.common.types import generate_id
from lesson_quiz.domain.lessons.services import LessonContentService
from lesson_quiz.domain.quiz.attempts import AttemptStore
from lesson_quiz.domain.quiz.graders import build_default_registry
from lesson_quiz.domain.quiz.hearts import HeartsLedger
from lesson_quiz.domain.quiz.services import QuizAttemptEngine
from lesson_quiz.domain.rewards.services import RewardGranter
from lesson_quiz.infra.db.base import create_engine, create_session_factory
from lesson_quiz.infra.db.session import create_tables
from lesson_quiz.infra.db.sql_store import SqlDataStore

LEARNER_ID = "learner-1"
CORRECT = {"choiceId": "A"}
WRONG = {"choiceId": "B"}


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that need a real DB (deselect with '-m \"not integration\"')"
    )


class FakeClock:
    """Controllable clock; call it to read, advance() to move it."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine with every table created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'quiz.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(db_engine):
    return SqlDataStore(create_session_factory(db_engine))


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def make_engine(store, registry, clock):
    """Build a QuizAttemptEngine over the test store; pieces can be swapped by keyword."""

    def _make(**overrides) -> QuizAttemptEngine:
        admin_store = overrides.pop("admin_store", store)
        parts = {
            "registry": registry,
            "hearts": HeartsLedger(store, clock=clock),
            "attempts": AttemptStore(store, clock=clock),
            "lessons": LessonContentService(store, admin_store, clock=clock),
            "rewards": RewardGranter(store, admin_store, clock=clock),
            "clock": clock,
        }
        parts.update(overrides)
        return QuizAttemptEngine(**parts)

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


def mc_question(quiz_id: str, order_index: int, points: Optional[int] = 10) -> dict:
    """Two-choice multiple choice row whose correct answer is A."""
    return {
        "id": f"{quiz_id}-q{order_index + 1}",
        "quiz_id": quiz_id,
        "question_type": "multiple_choice",
        "question_text": f"Question {order_index + 1}",
        "options": {"choices": {"A": "Right", "B": "Wrong"}},
        "correct_answer": "A",
        "explanation": f"Explanation {order_index + 1}",
        "points": points,
        "order_index": order_index,
    }


@pytest.fixture
def seed_lesson(store, clock):
    """Insert a published lesson with a quiz of multiple-choice questions; enroll the learner."""

    async def _seed(
        question_count: int = 3,
        *,
        learner_id: Optional[str] = LEARNER_ID,
        progress_percentage: int = 100,
        xp_reward: int = 50,
        badge_name: Optional[str] = "Quiz Whiz",
        with_quiz: bool = True,
        questions: Optional[list[dict]] = None,
    ) -> dict:
        now = clock()
        lesson_id = generate_id()
        await store.insert(
            "lessons",
            {
                "id": lesson_id,
                "title": "Slay",
                "origin_content": "Origin text",
                "definition_content": "Definition text",
                "usage_examples": ["Example one"],
                "xp_reward": xp_reward,
                "badge_name": badge_name,
                "completion_count": 0,
                "is_active": True,
                "is_published": True,
                "created_at": now,
                "updated_at": now,
            },
        )
        quiz_id = None
        question_ids: list[str] = []
        if with_quiz:
            quiz_id = generate_id()
            await store.insert(
                "quizzes",
                {"id": quiz_id, "lesson_id": lesson_id, "is_active": True, "created_at": now, "updated_at": now},
            )
            rows = questions if questions is not None else [
                mc_question(quiz_id, i) for i in range(question_count)
            ]
            for row in rows:
                await store.insert("quiz_questions", {**row, "quiz_id": quiz_id})
                question_ids.append(row["id"])
        if learner_id:
            await store.insert(
                "user_lesson_progress",
                {
                    "id": generate_id(),
                    "user_id": learner_id,
                    "lesson_id": lesson_id,
                    "status": "in_progress",
                    "progress_percentage": progress_percentage,
                    "started_at": now,
                    "last_accessed_at": now,
                    "created_at": now,
                },
            )
        return {"lesson_id": lesson_id, "quiz_id": quiz_id, "question_ids": question_ids}

    return _seed


@pytest.fixture
def seed_profile(store, clock):
    async def _seed(learner_id: str = LEARNER_ID, **fields) -> dict:
        row = {
            "id": generate_id(),
            "user_id": learner_id,
            "reputation_points": 0,
            "current_streak": 0,
            "longest_streak": 0,
            "last_activity_date": None,
            "updated_at": clock(),
        }
        row.update(fields)
        return await store.insert("profiles", row)

    return _seed


@pytest.fixture
def set_hearts(store, clock):
    async def _set(hearts_remaining: int, refill_at: Optional[datetime] = None, learner_id: str = LEARNER_ID):
        await store.insert(
            "user_quiz_hearts",
            {
                "user_id": learner_id,
                "hearts_remaining": hearts_remaining,
                "refill_at": refill_at,
                "updated_at": clock(),
            },
        )

    return _set
