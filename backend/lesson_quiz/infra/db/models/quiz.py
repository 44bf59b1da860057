"""Quiz attempt, hearts and result database models."""
from sqlalchemy import Boolean, Column, Float, Index, Integer, String, text

from lesson_quiz.domain.common.types import utc_now
from lesson_quiz.infra.db.base import Base, JSONBType, UTCDateTime

_ACTIVE_ATTEMPT = text("status IN ('in_progress', 'paused_no_hearts')")


class UserQuizHeartsModel(Base):
    """One hearts row per learner."""

    __tablename__ = "user_quiz_hearts"

    user_id = Column(String, primary_key=True)
    hearts_remaining = Column(Integer, nullable=False)
    refill_at = Column(UTCDateTime, nullable=True)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now)


class QuizAttemptModel(Base):
    """Quiz attempt. At most one active (in_progress/paused_no_hearts) per learner and lesson."""

    __tablename__ = "user_lesson_quiz_attempts"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    lesson_id = Column(String, nullable=False)
    quiz_id = Column(String, nullable=True)
    status = Column(String, nullable=False)
    current_question_index = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    earned_score = Column(Integer, nullable=False, default=0)
    max_score = Column(Integer, nullable=False, default=0)
    answers = Column(JSONBType, nullable=False, default=dict)  # question id -> normalized response
    question_ids = Column(JSONBType, nullable=False, default=list)  # empty = full set, hash-ordered
    wrong_question_ids = Column(JSONBType, nullable=False, default=list)
    started_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now)
    completed_at = Column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index(
            "uq_user_lesson_quiz_attempts_active",
            "user_id",
            "lesson_id",
            unique=True,
            sqlite_where=_ACTIVE_ATTEMPT,
            postgresql_where=_ACTIVE_ATTEMPT,
        ),
        Index("ix_user_lesson_quiz_attempts_user_lesson_updated", "user_id", "lesson_id", "updated_at"),
    )


class UserQuizResultModel(Base):
    """Completed quiz result."""

    __tablename__ = "user_quiz_results"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    quiz_id = Column(String, nullable=False)
    score = Column(Integer, nullable=False)
    max_score = Column(Integer, nullable=False)
    percentage = Column(Float, nullable=False)
    passed = Column(Boolean, nullable=False)
    answers = Column(JSONBType, nullable=True)
    attempted_at = Column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_user_quiz_results_user_quiz", "user_id", "quiz_id"),
    )
