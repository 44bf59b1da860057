"""Fill-in-blank grader."""
from typing import Any, Optional

from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.models import GradeResult, Question, QuestionType

SINGLE_BLANK_ID = "blank_1"


class ClozeGrader(QuestionGrader):
    """Named blanks, each with its own choice set; correct only when every blank matches."""

    question_type = QuestionType.CLOZE.value

    def build_payload(self, question: Question) -> dict:
        blanks = self._blank_choices(question)
        return {
            "blankOptions": {
                blank_id: [{"id": choice_id, "text": text} for choice_id, text in choices.items()]
                for blank_id, choices in blanks.items()
            }
        }

    def grade(self, question: Question, response: Optional[dict]) -> GradeResult:
        blanks = self._blank_choices(question)
        expected = self._expected(question, blanks)
        raw_answers = self.response_map(response, "answers")

        answers: dict[str, str] = {}
        for blank_id, choices in blanks.items():
            choice_id = self.as_string(raw_answers.get(blank_id))
            if choice_id is None:
                raise self.invalid_response(f"Missing answer for blank {blank_id}")
            if choice_id not in choices:
                raise self.invalid_response(f"Invalid choice for blank {blank_id}")
            answers[blank_id] = choice_id

        correct = all(answers.get(blank_id) == choice_id for blank_id, choice_id in expected.items())
        return GradeResult(correct=correct, normalized_response={"answers": answers})

    def _blank_choices(self, question: Question) -> dict[str, dict[str, str]]:
        options = self.as_object(question.options)
        raw_blanks = self.as_object(options.get("blankOptions"))
        if not raw_blanks:
            choices = options.get("choices")
            if self.as_object(choices) or self.as_list(choices):
                raw_blanks = {SINGLE_BLANK_ID: choices}

        blanks: dict[str, dict[str, str]] = {}
        for key, value in raw_blanks.items():
            blank_id = self.as_string(key)
            if blank_id is None:
                continue
            choices = self._to_choices(value)
            if len(choices) < 2:
                raise self.invalid_definition(f"cloze options for {blank_id} must include at least 2 choices")
            blanks[blank_id] = choices
        if not blanks:
            raise self.invalid_definition("cloze questions require options.blankOptions")
        return blanks

    def _to_choices(self, value: Any) -> dict[str, str]:
        mapping = self.as_object(value)
        if mapping:
            choices = {}
            for key, text in mapping.items():
                choice_id = self.as_string(key)
                label = self.as_string(text)
                if choice_id is not None and label is not None:
                    choices[choice_id] = label
            return choices
        return {item["id"]: item["text"] for item in self.id_text_items(value)}

    def _expected(self, question: Question, blanks: dict[str, dict[str, str]]) -> dict[str, str]:
        decoded = self.decode_correct_answer(question)
        if decoded is None:
            raise self.invalid_definition("cloze questions require correct_answer")

        expected: dict[str, str] = {}
        if isinstance(decoded, dict) and decoded:
            for key, value in decoded.items():
                blank_id = self.as_string(key)
                choice_id = self.as_string(value)
                if blank_id is not None and choice_id is not None:
                    expected[blank_id] = choice_id
        elif isinstance(decoded, str) and len(blanks) == 1:
            expected[next(iter(blanks))] = decoded
        else:
            raise self.invalid_definition("cloze correct_answer must be a JSON object")

        unknown = sorted(set(expected) - set(blanks))
        if unknown:
            raise self.invalid_definition(f"cloze correct_answer names unknown blanks: {', '.join(unknown)}")
        for blank_id, choices in blanks.items():
            if expected.get(blank_id) not in choices:
                raise self.invalid_definition("cloze correct_answer must map each blank to a valid choice id")
        return expected
