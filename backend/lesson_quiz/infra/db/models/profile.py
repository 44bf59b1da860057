"""Profile, reward and achievement database models."""
from sqlalchemy import Column, Date, Index, Integer, String, Text, UniqueConstraint

from lesson_quiz.domain.common.types import utc_now
from lesson_quiz.infra.db.base import Base, UTCDateTime


class ProfileModel(Base):
    """Learner profile: XP and activity streak."""

    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, unique=True)
    display_name = Column(String, nullable=True)
    reputation_points = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date, nullable=True)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now)


class UserLessonRewardModel(Base):
    """Reward granted for a lesson; unique per learner and lesson."""

    __tablename__ = "user_lesson_rewards"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    lesson_id = Column(String, nullable=False)
    xp_awarded = Column(Integer, nullable=False, default=0)
    badge_name = Column(String, nullable=True)
    awarded_at = Column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_user_lesson_rewards_user_lesson"),
    )


class UserAchievementModel(Base):
    """Badge or other achievement earned by a learner."""

    __tablename__ = "user_achievements"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    achievement_name = Column(String, nullable=False)
    achievement_type = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    earned_at = Column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_user_achievements_user_id", "user_id"),
    )
