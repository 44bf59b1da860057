"""Ordered-token grader."""
from typing import Any, Optional

from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.models import GradeResult, Question, QuestionType


class WordBankGrader(QuestionGrader):
    """Learner arranges tokens; correct only on exact, order-sensitive equality."""

    question_type = QuestionType.WORD_BANK.value

    def build_payload(self, question: Question) -> dict:
        return {"tokens": self._tokens(question)}

    def grade(self, question: Question, response: Optional[dict]) -> GradeResult:
        valid_ids = {token["id"] for token in self._tokens(question)}
        expected = self._expected(question, valid_ids)

        response = response or {}
        raw_order = response.get("tokenOrder")
        if raw_order is None:
            raw_order = response.get("order")
        selected = self._ids(raw_order)
        problem = self._order_problem(selected, valid_ids, "response.tokenOrder")
        if problem:
            raise self.invalid_response(problem)
        return GradeResult(correct=selected == expected, normalized_response={"tokenOrder": selected})

    def _tokens(self, question: Question) -> list[dict]:
        tokens = self.id_text_items(self.as_object(question.options).get("tokens"))
        if len(tokens) < 2:
            raise self.invalid_definition("word_bank questions require options.tokens with at least 2 tokens")
        return tokens

    def _expected(self, question: Question, valid_ids: set[str]) -> list[str]:
        decoded = self.decode_correct_answer(question)
        if decoded is None:
            raise self.invalid_definition("word_bank questions require correct_answer")
        if isinstance(decoded, list):
            expected = self._ids(decoded)
        elif isinstance(decoded, dict):
            expected = self._ids(decoded.get("order"))
        else:
            raise self.invalid_definition("word_bank correct_answer must be JSON array or object with order")
        problem = self._order_problem(expected, valid_ids, "correct_answer")
        if problem:
            raise self.invalid_definition(problem)
        return expected

    def _ids(self, value: Any) -> list[str]:
        ids = []
        for item in self.as_list(value):
            token_id = self.as_string(item)
            if token_id is not None:
                ids.append(token_id)
        return ids

    @staticmethod
    def _order_problem(order: list[str], valid_ids: set[str], field_name: str) -> Optional[str]:
        if not order:
            return f"word_bank {field_name} is required"
        if len(set(order)) != len(order):
            return f"word_bank {field_name} cannot contain duplicate token ids"
        if not set(order) <= valid_ids:
            return f"word_bank {field_name} contains unknown token ids"
        return None
