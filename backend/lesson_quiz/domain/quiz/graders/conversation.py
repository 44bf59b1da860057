"""Branching-dialogue grader."""
from typing import Optional

from lesson_quiz.domain.quiz.graders.base import QuestionGrader
from lesson_quiz.domain.quiz.models import GradeResult, Question, QuestionType


class ConversationGrader(QuestionGrader):
    """One reply per turn; correct only when every turn picks the expected reply."""

    question_type = QuestionType.CONVERSATION.value

    def build_payload(self, question: Question) -> dict:
        return {"turns": self._turns(question)}

    def grade(self, question: Question, response: Optional[dict]) -> GradeResult:
        turns = self._turns(question)
        expected = self._expected(question, turns)
        raw_answers = self.response_map(response, "answers")

        answers: dict[str, str] = {}
        for turn in turns:
            turn_id = turn["id"]
            reply_id = self.as_string(raw_answers.get(turn_id))
            if reply_id is None:
                raise self.invalid_response(f"Missing answer for conversation turn {turn_id}")
            if reply_id not in {reply["id"] for reply in turn["replies"]}:
                raise self.invalid_response(f"Invalid reply id for conversation turn {turn_id}")
            answers[turn_id] = reply_id

        correct = all(answers.get(turn_id) == reply_id for turn_id, reply_id in expected.items())
        return GradeResult(correct=correct, normalized_response={"answers": answers})

    def _turns(self, question: Question) -> list[dict]:
        turns = []
        for raw_turn in self.as_list(self.as_object(question.options).get("turns")):
            turn = self.as_object(raw_turn)
            turn_id = self.as_string(turn.get("id"))
            prompt = self.as_string(turn.get("prompt"))
            if turn_id is None or prompt is None:
                continue
            replies = self.id_text_items(turn.get("replies"))
            if len(replies) < 2:
                raise self.invalid_definition("conversation turns require at least 2 replies")
            turns.append({"id": turn_id, "prompt": prompt, "replies": replies})
        if not turns:
            raise self.invalid_definition("conversation questions require options.turns")
        return turns

    def _expected(self, question: Question, turns: list[dict]) -> dict[str, str]:
        decoded = self.decode_correct_answer(question)
        if decoded is None:
            raise self.invalid_definition("Missing correct_answer")
        if not isinstance(decoded, dict):
            raise self.invalid_definition("Invalid JSON in correct_answer")

        expected: dict[str, str] = {}
        for turn in turns:
            turn_id = turn["id"]
            reply_id = self.as_string(decoded.get(turn_id))
            if reply_id is None:
                raise self.invalid_definition(f"conversation correct_answer missing turn {turn_id}")
            if reply_id not in {reply["id"] for reply in turn["replies"]}:
                raise self.invalid_definition(
                    f"conversation correct_answer contains invalid reply for turn {turn_id}"
                )
            expected[turn_id] = reply_id
        return expected
