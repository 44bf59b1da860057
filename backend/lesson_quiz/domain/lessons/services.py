"""Lesson content reads and the completion writes triggered by a passed quiz."""
import logging
from typing import Optional

from lesson_quiz.domain.common.errors import NotFoundError
from lesson_quiz.domain.common.store import DataStore, Order
from lesson_quiz.domain.common.types import Clock, clean_str, generate_id, parse_datetime, parse_int, utc_now
from lesson_quiz.domain.lessons.models import (
    Lesson,
    LessonProgressState,
    LessonSection,
    Quiz,
    completed_section_count,
)
from lesson_quiz.domain.quiz.models import Question

logger = logging.getLogger(__name__)

LESSONS_COLLECTION = "lessons"
QUIZZES_COLLECTION = "quizzes"
QUESTIONS_COLLECTION = "quiz_questions"
PROGRESS_COLLECTION = "user_lesson_progress"

_PROGRESS_ORDER = (
    Order("progress_percentage", descending=True),
    Order("last_accessed_at", descending=True),
    Order("created_at"),
)


class LessonContentService:
    """Lesson, section-progress and quiz lookups.

    Learner-scoped reads go through ``store``; quiz content and lesson counters
    go through ``admin_store``.
    """

    def __init__(self, store: DataStore, admin_store: DataStore, clock: Clock = utc_now):
        self.store = store
        self.admin_store = admin_store
        self.clock = clock

    async def get_lesson(self, lesson_id: str) -> Lesson:
        """Get an active, published, non-archived lesson."""
        rows = await self.store.find(
            LESSONS_COLLECTION,
            {"id": lesson_id, "is_active": True, "archived_at": None, "is_published": True},
            limit=1,
        )
        if not rows:
            raise NotFoundError("Lesson", lesson_id, message="Lesson not found")
        return Lesson.from_row(rows[0])

    async def get_progress(
        self, learner_id: str, lesson_id: str, sections: list[LessonSection]
    ) -> LessonProgressState:
        """Enrollment flag and completed-section count for the learner."""
        row = await self._progress_row(learner_id, lesson_id)
        if row is None:
            return LessonProgressState(is_enrolled=False, completed_sections=0)
        completed = completed_section_count(
            parse_int(row.get("progress_percentage")) or 0,
            clean_str(row.get("current_section")),
            sections,
        )
        return LessonProgressState(is_enrolled=True, completed_sections=completed)

    async def find_active_quiz(self, lesson_id: str) -> Optional[Quiz]:
        """Newest active, non-archived quiz for the lesson."""
        rows = await self.admin_store.find(
            QUIZZES_COLLECTION,
            {"lesson_id": lesson_id, "is_active": True, "archived_at": None},
            order=(Order("created_at", descending=True),),
            limit=1,
        )
        return Quiz.from_row(rows[0]) if rows else None

    async def get_questions(self, quiz_id: str) -> list[Question]:
        """Questions of a quiz in authoring order."""
        rows = await self.admin_store.find(
            QUESTIONS_COLLECTION,
            {"quiz_id": quiz_id},
            order=(Order("order_index"),),
        )
        return [Question.from_row(row) for row in rows]

    async def complete_lesson(self, learner_id: str, lesson_id: str, sections: list[LessonSection]) -> None:
        """Mark the learner's lesson progress completed at 100%."""
        now = self.clock()
        last_section = sections[-1].id if sections else None
        row = await self._progress_row(learner_id, lesson_id)
        if row is None:
            await self.store.insert(
                PROGRESS_COLLECTION,
                {
                    "id": generate_id(),
                    "user_id": learner_id,
                    "lesson_id": lesson_id,
                    "status": "completed",
                    "progress_percentage": 100,
                    "current_section": last_section,
                    "started_at": now,
                    "completed_at": now,
                    "last_accessed_at": now,
                    "created_at": now,
                },
            )
            return
        await self.store.update(
            PROGRESS_COLLECTION,
            {"id": row["id"]},
            {
                "status": "completed",
                "progress_percentage": 100,
                "current_section": last_section,
                "started_at": parse_datetime(row.get("started_at")) or now,
                "completed_at": now,
                "last_accessed_at": now,
            },
        )

    async def increment_completion_count(self, lesson_id: str) -> None:
        """Bump the lesson's completion counter."""
        rows = await self.admin_store.find(LESSONS_COLLECTION, {"id": lesson_id}, limit=1)
        if not rows:
            return
        current = parse_int(rows[0].get("completion_count")) or 0
        await self.admin_store.update(
            LESSONS_COLLECTION,
            {"id": lesson_id},
            {"completion_count": current + 1, "updated_at": self.clock()},
        )
        logger.info("Lesson %s completion count is now %s", lesson_id, current + 1)

    async def _progress_row(self, learner_id: str, lesson_id: str) -> Optional[dict]:
        rows = await self.store.find(
            PROGRESS_COLLECTION,
            {"user_id": learner_id, "lesson_id": lesson_id},
            order=_PROGRESS_ORDER,
            limit=1,
        )
        return rows[0] if rows else None
