"""Per-type question graders."""
from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.graders.registry import GraderRegistry, SUPPORTED_TYPES, build_default_registry

__all__ = ["QuestionGrader", "GraderRegistry", "SUPPORTED_TYPES", "build_default_registry"]
