"""Hearts ledger: a learner's lives and their time-boxed regeneration."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from lesson_quiz.domain.common.errors import ConflictError, NotFoundError
from lesson_quiz.domain.common.store import DataStore, StoreConflictError
from lesson_quiz.domain.common.types import Clock, parse_datetime, parse_int, utc_now
from lesson_quiz.domain.quiz.models import HeartsState

logger = logging.getLogger(__name__)

HEARTS_COLLECTION = "user_quiz_hearts"
MAX_HEARTS = 5
REFILL_HOURS = 24
# Conditional writes retried before giving up on a contended row.
WRITE_ATTEMPTS = 5


class HeartsLedger:
    """Reads and mutates the one hearts row each learner owns."""

    def __init__(
        self,
        store: DataStore,
        max_hearts: int = MAX_HEARTS,
        refill_hours: int = REFILL_HOURS,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.max_hearts = max_hearts
        self.refill_window = timedelta(hours=refill_hours)
        self.clock = clock

    async def ensure(self, learner_id: str) -> HeartsState:
        """Return current hearts, creating the row or applying regeneration as needed."""
        for _ in range(WRITE_ATTEMPTS):
            row = await self._read(learner_id)
            now = self.clock()
            if row is None:
                return await self._create(learner_id, now)
            state = self._state(row)
            if not self._due_for_refill(state, now):
                return state
            refilled = await self.store.update(
                HEARTS_COLLECTION,
                {
                    "user_id": learner_id,
                    "hearts_remaining": row.get("hearts_remaining"),
                    "refill_at": state.refill_at,
                },
                {"hearts_remaining": self.max_hearts, "refill_at": None, "updated_at": now},
            )
            if refilled:
                logger.info("Refilled hearts for %s", learner_id)
                return HeartsState(hearts_remaining=self.max_hearts, refill_at=None)
            logger.info("Hearts for %s changed during refill; re-reading", learner_id)
        raise ConflictError("Hearts changed concurrently. Try again.")

    async def consume(self, learner_id: str, current: HeartsState) -> HeartsState:
        """Spend one heart (floored at zero); hitting zero starts the refill window.

        The write only lands if the stored count still matches the one it was
        computed from; otherwise the row is re-read and the decrement retried.
        """
        state = current
        expected = current.hearts_remaining
        for _ in range(WRITE_ATTEMPTS):
            if state.hearts_remaining <= 0:
                return state
            now = self.clock()
            remaining = state.hearts_remaining - 1
            refill_at = now + self.refill_window if remaining == 0 else state.refill_at
            rows = await self.store.update(
                HEARTS_COLLECTION,
                {"user_id": learner_id, "hearts_remaining": expected},
                {"hearts_remaining": remaining, "refill_at": refill_at, "updated_at": now},
            )
            if rows:
                return HeartsState(hearts_remaining=remaining, refill_at=refill_at)
            logger.info("Hearts for %s changed concurrently; retrying consume", learner_id)
            row = await self._read(learner_id)
            if row is None:
                raise NotFoundError("Hearts", learner_id)
            state = self._state(row)
            expected = row.get("hearts_remaining")
        raise ConflictError("Hearts changed concurrently. Try again.")

    async def _read(self, learner_id: str) -> Optional[dict]:
        rows = await self.store.find(HEARTS_COLLECTION, {"user_id": learner_id}, limit=1)
        return rows[0] if rows else None

    async def _create(self, learner_id: str, now: datetime) -> HeartsState:
        try:
            created = await self.store.insert(
                HEARTS_COLLECTION,
                {
                    "user_id": learner_id,
                    "hearts_remaining": self.max_hearts,
                    "refill_at": now + self.refill_window,
                    "updated_at": now,
                },
            )
        except StoreConflictError:
            logger.warning("Hearts row for %s was created concurrently; re-reading", learner_id)
            row = await self._read(learner_id)
            if row is None:
                raise
            return self._state(row)
        return self._state(created)

    def _due_for_refill(self, state: HeartsState, now) -> bool:
        return (
            state.hearts_remaining < self.max_hearts
            and state.refill_at is not None
            and now >= state.refill_at
        )

    def _state(self, row: dict) -> HeartsState:
        hearts = parse_int(row.get("hearts_remaining"))
        if hearts is None:
            hearts = self.max_hearts
        return HeartsState(
            hearts_remaining=max(0, min(hearts, self.max_hearts)),
            refill_at=parse_datetime(row.get("refill_at")),
        )
