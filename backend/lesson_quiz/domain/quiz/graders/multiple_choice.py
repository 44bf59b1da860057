"""Single-choice grader."""
from typing import Optional

from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.models import GradeResult, Question, QuestionType


class MultipleChoiceGrader(QuestionGrader):
    """One correct option among at least two, compared case-insensitively by id."""

    question_type = QuestionType.MULTIPLE_CHOICE.value

    def build_payload(self, question: Question) -> dict:
        choices = self._choices(question)
        return {"choices": [{"id": choice_id, "text": text} for choice_id, text in choices.items()]}

    def grade(self, question: Question, response: Optional[dict]) -> GradeResult:
        choices = self._choices(question)
        response = response or {}
        selected = self.as_string(response.get("choiceId"))
        if selected is None:
            selected = self.as_string(response.get("selectedOption"))
        if selected is None:
            raise self.invalid_response("Answer response is missing choiceId")
        selected = selected.upper()
        if selected not in choices:
            raise self.invalid_response("Invalid answer option")

        correct = self.as_string(self.decode_correct_answer(question))
        if correct is None:
            raise self.invalid_definition("Question is missing correct_answer")
        correct = correct.upper()
        if correct not in choices:
            raise self.invalid_definition("Question has invalid correct_answer")
        return GradeResult(correct=selected == correct, normalized_response={"choiceId": selected})

    def _choices(self, question: Question) -> dict[str, str]:
        options = self.as_object(question.options)
        raw_choices = self.as_object(options.get("choices")) or options
        choices: dict[str, str] = {}
        for key, value in raw_choices.items():
            choice_id = self.as_string(key)
            text = self.as_string(value) if not isinstance(value, (dict, list)) else None
            if choice_id is None or text is None:
                continue
            choices[choice_id.upper()] = text
        if len(choices) < 2:
            raise self.invalid_definition("multiple_choice questions require at least 2 choices")
        return choices
