"""First-pass lesson rewards: XP, streak and badge, granted at most once."""
import logging
from datetime import timedelta
from typing import Optional

from lesson_quiz.domain.common.store import (
    DataStore,
    StoreConflictError,
    StoreError,
    StorePermissionError,
)
from lesson_quiz.domain.common.types import Clock, clean_str, generate_id, parse_date, parse_int, utc_now

logger = logging.getLogger(__name__)

REWARDS_COLLECTION = "user_lesson_rewards"
PROFILES_COLLECTION = "profiles"
ACHIEVEMENTS_COLLECTION = "user_achievements"
LESSON_BADGE_TYPE = "lesson_badge"


class RewardGranter:
    """Idempotent reward granting keyed by (learner, lesson)."""

    def __init__(self, store: DataStore, admin_store: DataStore, clock: Clock = utc_now):
        self.store = store
        self.admin_store = admin_store
        self.clock = clock

    async def grant_if_first_pass(
        self, learner_id: str, lesson_id: str, xp: int, badge: Optional[str] = None
    ) -> bool:
        """Grant the lesson reward once. Returns False when it was already granted."""
        if not await self._insert_reward(learner_id, lesson_id, xp, badge):
            logger.info("Reward for user %s lesson %s already granted", learner_id, lesson_id)
            return False

        await self._increment_xp(learner_id, xp)
        await self._update_streak(learner_id)
        if badge:
            await self._insert_badge(learner_id, badge)
        logger.info("Granted %s XP for user %s lesson %s (badge=%s)", max(0, xp), learner_id, lesson_id, badge)
        return True

    async def _insert_reward(self, learner_id: str, lesson_id: str, xp: int, badge: Optional[str]) -> bool:
        row = {
            "id": generate_id(),
            "user_id": learner_id,
            "lesson_id": lesson_id,
            "xp_awarded": xp,
            "badge_name": badge,
            "awarded_at": self.clock(),
        }
        try:
            await self.store.insert(REWARDS_COLLECTION, row)
            return True
        except StoreConflictError:
            return False
        except StorePermissionError:
            logger.warning("Reward insert denied for user %s; retrying with privileged store", learner_id)

        try:
            await self.admin_store.insert(REWARDS_COLLECTION, row)
            return True
        except StoreConflictError:
            return False

    async def _profile(self, learner_id: str) -> Optional[dict]:
        rows = await self.store.find(PROFILES_COLLECTION, {"user_id": learner_id}, limit=1)
        return rows[0] if rows else None

    async def _increment_xp(self, learner_id: str, xp: int) -> None:
        profile = await self._profile(learner_id)
        if profile is None:
            return
        current = parse_int(profile.get("reputation_points")) or 0
        await self.store.update(
            PROFILES_COLLECTION,
            {"id": profile["id"]},
            {"reputation_points": current + max(0, xp), "updated_at": self.clock()},
        )

    async def _update_streak(self, learner_id: str) -> None:
        profile = await self._profile(learner_id)
        if profile is None or clean_str(profile.get("id")) is None:
            return

        now = self.clock()
        today = now.date()
        last_activity = parse_date(profile.get("last_activity_date"))
        if last_activity == today:
            return
        current = parse_int(profile.get("current_streak")) or 0
        longest = parse_int(profile.get("longest_streak")) or 0
        if last_activity is not None and last_activity + timedelta(days=1) == today:
            next_streak = max(1, current + 1)
        else:
            next_streak = 1

        try:
            await self.store.update(
                PROFILES_COLLECTION,
                {"id": profile["id"]},
                {
                    "current_streak": next_streak,
                    "longest_streak": max(longest, next_streak),
                    "last_activity_date": today,
                    "updated_at": now,
                },
            )
        except StoreError as e:
            # The reward row is already committed.
            logger.warning("Unable to update streak for user %s: %s", learner_id, e)

    async def _insert_badge(self, learner_id: str, badge: str) -> None:
        await self.store.insert(
            ACHIEVEMENTS_COLLECTION,
            {
                "id": generate_id(),
                "user_id": learner_id,
                "achievement_name": badge,
                "achievement_type": LESSON_BADGE_TYPE,
                "description": "Earned by passing lesson quiz",
                "earned_at": self.clock(),
            },
        )
