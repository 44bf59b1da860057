"""Free-text grader."""
import re
from typing import Any, Optional

from lesson_quiz.domain.common.types import parse_int
from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.models import GradeResult, Question, QuestionType

DEFAULT_PLACEHOLDER = "Type your answer"
DEFAULT_MIN_LENGTH = 1
DEFAULT_MAX_LENGTH = 280

_WHITESPACE = re.compile(r"\s+")


def normalize_text(value: Any) -> Optional[str]:
    """Case-fold and collapse whitespace; None for blank input."""
    if value is None:
        return None
    collapsed = _WHITESPACE.sub(" ", str(value)).strip()
    return collapsed.casefold() or None


class ShortTextGrader(QuestionGrader):
    """Typed answer checked against a set of accepted strings."""

    question_type = QuestionType.SHORT_TEXT.value

    def build_payload(self, question: Question) -> dict:
        options = self.as_object(question.options)
        min_length = parse_int(options.get("minLength"))
        max_length = parse_int(options.get("maxLength"))
        return {
            "placeholder": self.as_string(options.get("placeholder")) or DEFAULT_PLACEHOLDER,
            "minLength": DEFAULT_MIN_LENGTH if min_length is None else min_length,
            "maxLength": DEFAULT_MAX_LENGTH if max_length is None else max_length,
        }

    def grade(self, question: Question, response: Optional[dict]) -> GradeResult:
        response = response or {}
        submitted = self.as_string(response.get("text"))
        if submitted is None:
            submitted = self.as_string(response.get("value"))
        if submitted is None:
            raise self.invalid_response("Answer response is missing text")
        normalized = normalize_text(submitted)
        if normalized is None:
            raise self.invalid_response("Answer response is empty")

        accepted = self._accepted(question)
        return GradeResult(correct=normalized in accepted, normalized_response={"text": submitted})

    def _accepted(self, question: Question) -> set[str]:
        decoded = self.decode_correct_answer(question)
        if decoded is None:
            raise self.invalid_definition("short_text questions require correct_answer")
        if isinstance(decoded, dict):
            candidates = self.as_list(decoded.get("accepted"))
        elif isinstance(decoded, list):
            candidates = decoded
        else:
            candidates = [decoded]

        accepted = set()
        for candidate in candidates:
            normalized = normalize_text(candidate)
            if normalized is not None:
                accepted.add(normalized)
        if not accepted:
            raise self.invalid_definition("short_text questions require at least one accepted answer")
        return accepted
