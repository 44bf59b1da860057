"""Boolean grader."""
from typing import Any, Optional

from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.models import GradeResult, Question, QuestionType

_CHOICES = [
    {"id": "true", "text": "True"},
    {"id": "false", "text": "False"},
]


class TrueFalseGrader(QuestionGrader):
    """Booleans, accepting case-insensitive "true"/"false" strings on either side."""

    question_type = QuestionType.TRUE_FALSE.value

    def build_payload(self, question: Question) -> dict:
        return {"choices": [dict(choice) for choice in _CHOICES]}

    def grade(self, question: Question, response: Optional[dict]) -> GradeResult:
        correct = self._parse_bool(question.correct_answer)
        if correct is None:
            raise self.invalid_definition("true_false questions require correct_answer of true or false")
        response = response or {}
        value = response.get("value")
        if value is None:
            value = response.get("choiceId")
        selected = self._parse_bool(value)
        if selected is None:
            raise self.invalid_response("Answer response is missing boolean value")
        return GradeResult(correct=selected == correct, normalized_response={"value": selected})

    def _parse_bool(self, value: Any) -> Optional[bool]:
        if isinstance(value, bool):
            return value
        text = self.as_string(value)
        if text is None:
            return None
        lowered = text.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        return None
