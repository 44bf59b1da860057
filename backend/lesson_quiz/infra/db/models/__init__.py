"""Database models."""
from lesson_quiz.infra.db.models.lesson import (
    LessonModel,
    QuizModel,
    QuizQuestionModel,
    UserLessonProgressModel,
)
from lesson_quiz.infra.db.models.quiz import (
    UserQuizHeartsModel,
    QuizAttemptModel,
    UserQuizResultModel,
)
from lesson_quiz.infra.db.models.profile import (
    ProfileModel,
    UserLessonRewardModel,
    UserAchievementModel,
)

__all__ = [
    "LessonModel",
    "QuizModel",
    "QuizQuestionModel",
    "UserLessonProgressModel",
    "UserQuizHeartsModel",
    "QuizAttemptModel",
    "UserQuizResultModel",
    "ProfileModel",
    "UserLessonRewardModel",
    "UserAchievementModel",
]
