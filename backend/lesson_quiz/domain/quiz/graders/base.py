"""Grader interface and the parsing helpers every grader shares."""
import json
from abc import ABC, abstractmethod
from typing import Any, Optional

from lesson_quiz.domain.common.errors import InvalidQuestionDefinitionError, InvalidResponseError
from lesson_quiz.domain.quiz.models import GradeResult, Question


class QuestionGrader(ABC):
    """Strategy for one question type: render a client-safe payload and grade a response."""

    question_type: str = ""

    @abstractmethod
    def build_payload(self, question: Question) -> dict:
        """Return what the learner needs to render the question (no correct answer)."""

    @abstractmethod
    def grade(self, question: Question, response: Optional[dict]) -> GradeResult:
        """Grade a response. Raises InvalidResponseError for malformed responses."""

    # Helpers

    @staticmethod
    def as_object(value: Any) -> dict:
        if not isinstance(value, dict):
            return {}
        return {str(k): v for k, v in value.items() if k is not None}

    @staticmethod
    def as_list(value: Any) -> list:
        return list(value) if isinstance(value, (list, tuple)) else []

    @staticmethod
    def as_string(value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bool):
            return "true" if value else "false"
        text = str(value).strip()
        return text or None

    def decode_correct_answer(self, question: Question) -> Any:
        """Structured correct answer, decoding JSON strings. None when missing."""
        raw = question.correct_answer
        if isinstance(raw, (dict, list, bool)):
            return raw
        text = self.as_string(raw)
        if text is None:
            return None
        if text.startswith("{") or text.startswith("["):
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                raise self.invalid_definition("Invalid JSON in correct_answer")
        return text

    def response_map(self, response: Optional[dict], key: str) -> dict:
        """The nested map under key, or the response itself when the key is absent."""
        if response is None:
            return {}
        nested = response.get(key)
        if nested is None:
            return response
        return self.as_object(nested)

    def id_text_items(self, value: Any) -> list[dict]:
        """Normalize a list of {id, text} items, dropping incomplete ones."""
        items = []
        for raw in self.as_list(value):
            item = self.as_object(raw)
            item_id = self.as_string(item.get("id"))
            text = self.as_string(item.get("text"))
            if item_id is not None and text is not None:
                items.append({"id": item_id, "text": text})
        return items

    def invalid_response(self, message: str) -> InvalidResponseError:
        return InvalidResponseError(message)

    def invalid_definition(self, message: str) -> InvalidQuestionDefinitionError:
        return InvalidQuestionDefinitionError(message)
