"""Lesson content database models."""
from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text

from lesson_quiz.domain.common.types import utc_now
from lesson_quiz.infra.db.base import Base, JSONBType, UTCDateTime


class LessonModel(Base):
    """Lesson with its section content columns."""

    __tablename__ = "lessons"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    origin_content = Column(Text, nullable=True)
    definition_content = Column(Text, nullable=True)
    usage_examples = Column(JSONBType, nullable=True)  # list of example strings
    lore_content = Column(Text, nullable=True)
    evolution_content = Column(Text, nullable=True)
    comparison_content = Column(Text, nullable=True)
    xp_reward = Column(Integer, nullable=False, default=0)
    badge_name = Column(String, nullable=True)
    completion_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    is_published = Column(Boolean, nullable=False, default=False)
    archived_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)


class QuizModel(Base):
    """Quiz attached to a lesson; the newest active one is served."""

    __tablename__ = "quizzes"

    id = Column(String, primary_key=True)
    lesson_id = Column(String, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    archived_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index("ix_quizzes_lesson_id", "lesson_id"),
    )


class QuizQuestionModel(Base):
    """Authored question. options and correct_answer are interpreted by the question-type grader."""

    __tablename__ = "quiz_questions"

    id = Column(String, primary_key=True)
    quiz_id = Column(String, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    question_type = Column(String, nullable=True)
    question_text = Column(Text, nullable=True)
    options = Column(JSONBType, nullable=True)
    correct_answer = Column(JSONBType, nullable=True)
    explanation = Column(Text, nullable=True)
    points = Column(Integer, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    media_url = Column(String, nullable=True)
    template_version = Column(Integer, nullable=False, default=1)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_quiz_questions_quiz_order", "quiz_id", "order_index"),
    )


class UserLessonProgressModel(Base):
    """Learner's progress through a lesson's sections."""

    __tablename__ = "user_lesson_progress"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    lesson_id = Column(String, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False, default="in_progress")
    progress_percentage = Column(Integer, nullable=False, default=0)
    current_section = Column(String, nullable=True)
    started_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    last_accessed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_user_lesson_progress_user_lesson", "user_id", "lesson_id"),
    )
