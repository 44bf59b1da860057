"""Question-type to grader lookup, built once and read-only afterwards."""
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from lesson_quiz.domain.common.errors import GraderNotConfiguredError, UnsupportedQuestionTypeError
from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.graders.cloze import ClozeGrader
from lesson_quiz.domain.quiz.graders.conversation import ConversationGrader
from lesson_quiz.domain.quiz.graders.match_pairs import MatchPairsGrader
from lesson_quiz.domain.quiz.graders.multiple_choice import MultipleChoiceGrader
from lesson_quiz.domain.quiz.graders.short_text import ShortTextGrader
from lesson_quiz.domain.quiz.graders.true_false import TrueFalseGrader
from lesson_quiz.domain.quiz.graders.word_bank import WordBankGrader
from lesson_quiz.domain.quiz.models import QuestionType

SUPPORTED_TYPES = frozenset(question_type.value for question_type in QuestionType)


def _normalize(question_type: Optional[str]) -> str:
    return (question_type or "").strip().lower()


class GraderRegistry:
    """Maps a question type tag to its grader."""

    def __init__(self, graders: Iterable[QuestionGrader]):
        self._graders: Mapping[str, QuestionGrader] = MappingProxyType(
            {grader.question_type: grader for grader in graders}
        )

    @property
    def graders(self) -> Mapping[str, QuestionGrader]:
        return self._graders

    def require(self, question_type: Optional[str]) -> QuestionGrader:
        """Return the grader for a type.

        Raises UnsupportedQuestionTypeError for an unknown tag (caller error) and
        GraderNotConfiguredError when a supported tag has no grader (configuration bug).
        """
        normalized = _normalize(question_type)
        if normalized not in SUPPORTED_TYPES:
            raise UnsupportedQuestionTypeError(normalized)
        grader = self._graders.get(normalized)
        if grader is None:
            raise GraderNotConfiguredError(normalized)
        return grader

    def is_supported(self, question_type: Optional[str]) -> bool:
        return _normalize(question_type) in SUPPORTED_TYPES


def build_default_registry() -> GraderRegistry:
    """Registry with one grader per supported question type."""
    return GraderRegistry(
        [
            MultipleChoiceGrader(),
            TrueFalseGrader(),
            ClozeGrader(),
            WordBankGrader(),
            ConversationGrader(),
            MatchPairsGrader(),
            ShortTextGrader(),
        ]
    )
