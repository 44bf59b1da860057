"""Attempt persistence, including the compare-and-swap write used for answers."""
import logging
from typing import Any, Mapping, Optional, Sequence

from lesson_quiz.domain.common.store import DataStore, Order, StoreConflictError
from lesson_quiz.domain.common.types import Clock, generate_id, utc_now
from lesson_quiz.domain.quiz.models import ACTIVE_ATTEMPT_STATUSES, Attempt, AttemptStatus

logger = logging.getLogger(__name__)

ATTEMPTS_COLLECTION = "user_lesson_quiz_attempts"
RESULTS_COLLECTION = "user_quiz_results"

_NEWEST_FIRST = (Order("updated_at", descending=True),)


class AttemptStore:
    """Create, find and conditionally update quiz attempts."""

    def __init__(self, store: DataStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    async def find_by_id(self, learner_id: str, lesson_id: str, attempt_id: str) -> Optional[Attempt]:
        """Get an attempt owned by the learner for the lesson."""
        rows = await self.store.find(
            ATTEMPTS_COLLECTION,
            {"id": attempt_id, "user_id": learner_id, "lesson_id": lesson_id},
            limit=1,
        )
        return Attempt.from_row(rows[0]) if rows else None

    async def find_active(self, learner_id: str, lesson_id: str) -> Optional[Attempt]:
        """Get the in-progress or paused attempt, if any."""
        rows = await self.store.find(
            ATTEMPTS_COLLECTION,
            {"user_id": learner_id, "lesson_id": lesson_id, "status": list(ACTIVE_ATTEMPT_STATUSES)},
            order=_NEWEST_FIRST,
            limit=1,
        )
        return Attempt.from_row(rows[0]) if rows else None

    async def find_latest(self, learner_id: str, lesson_id: str) -> Optional[Attempt]:
        """Get the most recently touched attempt regardless of status."""
        rows = await self.store.find(
            ATTEMPTS_COLLECTION,
            {"user_id": learner_id, "lesson_id": lesson_id},
            order=_NEWEST_FIRST,
            limit=1,
        )
        return Attempt.from_row(rows[0]) if rows else None

    async def create(
        self,
        learner_id: str,
        lesson_id: str,
        quiz_id: str,
        max_score: int,
        question_ids: Optional[Sequence[str]] = None,
    ) -> Attempt:
        """Start a new in-progress attempt.

        If another request already holds the active slot for this learner and
        lesson, the existing active attempt is returned instead.
        """
        now = self.clock()
        row = {
            "id": generate_id(),
            "user_id": learner_id,
            "lesson_id": lesson_id,
            "quiz_id": quiz_id,
            "status": AttemptStatus.IN_PROGRESS.value,
            "current_question_index": 0,
            "correct_count": 0,
            "earned_score": 0,
            "max_score": max_score,
            "answers": {},
            "question_ids": list(question_ids or []),
            "wrong_question_ids": [],
            "started_at": now,
            "updated_at": now,
            "completed_at": None,
        }
        try:
            created = await self.store.insert(ATTEMPTS_COLLECTION, row)
        except StoreConflictError:
            active = await self.find_active(learner_id, lesson_id)
            if active is None:
                raise
            logger.warning(
                "Attempt for user %s lesson %s was created concurrently; using %s",
                learner_id,
                lesson_id,
                active.id,
            )
            return active
        logger.info(
            "Created quiz attempt %s for user %s lesson %s (%s questions scoped)",
            created.get("id"),
            learner_id,
            lesson_id,
            len(row["question_ids"]) or "all",
        )
        return Attempt.from_row(created)

    async def set_status(self, attempt: Attempt, status: str) -> Attempt:
        """Move the attempt to ``status`` if it is still as read.

        When another request moved it first, the stored attempt is returned
        unchanged instead.
        """
        updated = await self.update_if(
            attempt.id, attempt.current_question_index, attempt.status, {"status": status}
        )
        if updated is not None:
            return updated
        current = await self.find_by_id(attempt.user_id, attempt.lesson_id, attempt.id)
        logger.info(
            "Attempt %s changed before status %s could be set; now %s",
            attempt.id,
            status,
            current.status if current else "missing",
        )
        return current or attempt

    async def update_if(
        self,
        attempt_id: str,
        expected_index: int,
        expected_status: str,
        patch: Mapping[str, Any],
    ) -> Optional[Attempt]:
        """Compare-and-swap: apply patch only if index and status are still as read.

        Returns None when the stored attempt moved on.
        """
        filters: dict[str, Any] = {"id": attempt_id, "current_question_index": expected_index}
        if expected_status:
            filters["status"] = expected_status
        rows = await self.store.update(ATTEMPTS_COLLECTION, filters, self._stamped(patch))
        return Attempt.from_row(rows[0]) if rows else None

    async def record_result(
        self,
        learner_id: str,
        quiz_id: str,
        score: int,
        max_score: int,
        passed: bool,
        answers: Mapping[str, Any],
    ) -> None:
        """Append a completed-quiz result row."""
        await self.store.insert(
            RESULTS_COLLECTION,
            {
                "id": generate_id(),
                "user_id": learner_id,
                "quiz_id": quiz_id,
                "score": score,
                "max_score": max_score,
                "percentage": 0.0 if max_score <= 0 else score * 100.0 / max_score,
                "passed": passed,
                "answers": dict(answers),
                "attempted_at": self.clock(),
            },
        )

    def _stamped(self, patch: Mapping[str, Any]) -> dict[str, Any]:
        stamped = dict(patch)
        stamped.setdefault("updated_at", self.clock())
        return stamped
