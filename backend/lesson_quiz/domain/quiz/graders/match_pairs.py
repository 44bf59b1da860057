"""Pairing grader."""
from typing import Optional

from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.models import GradeResult, Question, QuestionType


class MatchPairsGrader(QuestionGrader):
    """Left items mapped to right items; correct only on an exact mapping match."""

    question_type = QuestionType.MATCH_PAIRS.value

    def build_payload(self, question: Question) -> dict:
        left, right = self._sides(question)
        return {"left": left, "right": right}

    def grade(self, question: Question, response: Optional[dict]) -> GradeResult:
        left, right = self._sides(question)
        left_ids = [item["id"] for item in left]
        right_ids = {item["id"] for item in right}
        expected = self._expected(question, left_ids, right_ids)

        raw_pairs = self.response_map(response, "pairs")
        if response is not None and raw_pairs is response:
            raw_pairs = self.response_map(response, "answers")

        pairs: dict[str, str] = {}
        for left_id in left_ids:
            right_id = self.as_string(raw_pairs.get(left_id))
            if right_id is None:
                raise self.invalid_response(f"Missing pair for left item {left_id}")
            if right_id not in right_ids:
                raise self.invalid_response(f"Invalid right-side id for left item {left_id}")
            pairs[left_id] = right_id

        return GradeResult(correct=pairs == expected, normalized_response={"pairs": pairs})

    def _sides(self, question: Question) -> tuple[list[dict], list[dict]]:
        options = self.as_object(question.options)
        left = self.id_text_items(options.get("left"))
        right = self.id_text_items(options.get("right"))
        if len(left) < 2 or len(right) < 2:
            raise self.invalid_definition("match_pairs questions require at least 2 left and 2 right items")
        return left, right

    def _expected(self, question: Question, left_ids: list[str], right_ids: set[str]) -> dict[str, str]:
        decoded = self.decode_correct_answer(question)
        if decoded is None:
            raise self.invalid_definition("match_pairs questions require correct_answer")
        if not isinstance(decoded, dict):
            raise self.invalid_definition("Invalid JSON in correct_answer")
        expected: dict[str, str] = {}
        for left_id in left_ids:
            right_id = self.as_string(decoded.get(left_id))
            if right_id is None or right_id not in right_ids:
                raise self.invalid_definition(
                    "match_pairs correct_answer must map each left id to a valid right id"
                )
            expected[left_id] = right_id
        return expected
