"""Tests for the per-type question graders."""
import pytest

from lesson_quiz.domain.common.errors import InvalidQuestionDefinitionError, InvalidResponseError
from lesson_quiz.domain.quiz.graders.cloze import ClozeGrader
from lesson_quiz.domain.quiz.graders.conversation import ConversationGrader
from lesson_quiz.domain.quiz.graders.match_pairs import MatchPairsGrader
from lesson_quiz.domain.quiz.graders.multiple_choice import MultipleChoiceGrader
from lesson_quiz.domain.quiz.graders.short_text import ShortTextGrader, normalize_text
from lesson_quiz.domain.quiz.graders.true_false import TrueFalseGrader
from lesson_quiz.domain.quiz.graders.word_bank import WordBankGrader
from lesson_quiz.domain.quiz.models import Question


def make_question(question_type: str, options, correct_answer, **kwargs) -> Question:
    return Question(
        id=kwargs.pop("id", "q1"),
        quiz_id="quiz-1",
        question_type=question_type,
        question_text="Prompt",
        options=options,
        correct_answer=correct_answer,
        **kwargs,
    )


class TestMultipleChoice:
    grader = MultipleChoiceGrader()
    question = make_question(
        "multiple_choice",
        {"choices": {"A": "Charm", "B": "Anger", "C": "Hunger"}},
        "A",
    )

    def test_payload_lists_choices_without_answer(self):
        payload = self.grader.build_payload(self.question)
        assert payload == {
            "choices": [
                {"id": "A", "text": "Charm"},
                {"id": "B", "text": "Anger"},
                {"id": "C", "text": "Hunger"},
            ]
        }

    def test_case_insensitive_match(self):
        result = self.grader.grade(self.question, {"choiceId": "a"})
        assert result.correct is True
        assert result.normalized_response == {"choiceId": "A"}

    def test_selected_option_alias(self):
        assert self.grader.grade(self.question, {"selectedOption": "B"}).correct is False

    def test_flat_options_map(self):
        question = make_question("multiple_choice", {"A": "Yes", "B": "No"}, "b")
        assert self.grader.grade(question, {"choiceId": "B"}).correct is True

    def test_missing_choice(self):
        with pytest.raises(InvalidResponseError, match="missing choiceId"):
            self.grader.grade(self.question, {})

    def test_unknown_choice(self):
        with pytest.raises(InvalidResponseError, match="Invalid answer option"):
            self.grader.grade(self.question, {"choiceId": "Z"})

    def test_too_few_choices_is_definition_error(self):
        question = make_question("multiple_choice", {"choices": {"A": "Only"}}, "A")
        with pytest.raises(InvalidQuestionDefinitionError):
            self.grader.build_payload(question)

    def test_correct_answer_not_a_choice(self):
        question = make_question("multiple_choice", {"choices": {"A": "x", "B": "y"}}, "D")
        with pytest.raises(InvalidQuestionDefinitionError, match="invalid correct_answer"):
            self.grader.grade(question, {"choiceId": "A"})


class TestTrueFalse:
    grader = TrueFalseGrader()

    def test_payload_is_fixed(self):
        question = make_question("true_false", {}, True)
        assert self.grader.build_payload(question) == {
            "choices": [{"id": "true", "text": "True"}, {"id": "false", "text": "False"}]
        }

    @pytest.mark.parametrize("correct_answer", [True, "true", "TRUE", " True "])
    def test_correct_answer_forms(self, correct_answer):
        question = make_question("true_false", {}, correct_answer)
        assert self.grader.grade(question, {"value": True}).correct is True

    def test_string_response_and_choice_id_alias(self):
        question = make_question("true_false", {}, "false")
        result = self.grader.grade(question, {"choiceId": "False"})
        assert result.correct is True
        assert result.normalized_response == {"value": False}

    def test_unparseable_response(self):
        question = make_question("true_false", {}, "true")
        with pytest.raises(InvalidResponseError):
            self.grader.grade(question, {"value": "maybe"})

    def test_unparseable_correct_answer(self):
        question = make_question("true_false", {}, "yes")
        with pytest.raises(InvalidQuestionDefinitionError):
            self.grader.grade(question, {"value": True})


class TestCloze:
    grader = ClozeGrader()
    question = make_question(
        "cloze",
        {
            "blankOptions": {
                "b1": [{"id": "rizz", "text": "rizz"}, {"id": "mid", "text": "mid"}],
                "b2": {"x": "slay", "y": "cap"},
            }
        },
        '{"b1": "rizz", "b2": "x"}',
    )

    def test_payload(self):
        payload = self.grader.build_payload(self.question)
        assert payload["blankOptions"]["b1"] == [{"id": "rizz", "text": "rizz"}, {"id": "mid", "text": "mid"}]
        assert payload["blankOptions"]["b2"] == [{"id": "x", "text": "slay"}, {"id": "y", "text": "cap"}]

    def test_all_blanks_correct(self):
        result = self.grader.grade(self.question, {"answers": {"b1": "rizz", "b2": "x"}})
        assert result.correct is True
        assert result.normalized_response == {"answers": {"b1": "rizz", "b2": "x"}}

    def test_one_blank_wrong(self):
        assert self.grader.grade(self.question, {"answers": {"b1": "rizz", "b2": "y"}}).correct is False

    def test_flat_response_map(self):
        assert self.grader.grade(self.question, {"b1": "rizz", "b2": "x"}).correct is True

    def test_missing_blank(self):
        with pytest.raises(InvalidResponseError, match="Missing answer for blank b2"):
            self.grader.grade(self.question, {"answers": {"b1": "rizz"}})

    def test_invalid_choice(self):
        with pytest.raises(InvalidResponseError, match="Invalid choice for blank b1"):
            self.grader.grade(self.question, {"answers": {"b1": "nope", "b2": "x"}})

    def test_single_blank_from_choices_and_string_answer(self):
        question = make_question(
            "cloze",
            {"choices": [{"id": "a", "text": "A"}, {"id": "b", "text": "B"}]},
            "b",
        )
        assert self.grader.grade(question, {"answers": {"blank_1": "b"}}).correct is True

    def test_malformed_json_answer(self):
        question = make_question("cloze", {"choices": {"a": "A", "b": "B"}}, "{not json")
        with pytest.raises(InvalidQuestionDefinitionError, match="Invalid JSON"):
            self.grader.grade(question, {"answers": {"blank_1": "a"}})

    def test_answer_key_for_unknown_blank(self):
        question = make_question(
            "cloze",
            {"blankOptions": {"b1": {"x": "rizz", "y": "mid"}}},
            '{"b1": "x", "ghost": "y"}',
        )
        with pytest.raises(InvalidQuestionDefinitionError, match="unknown blanks: ghost"):
            self.grader.grade(question, {"answers": {"b1": "x"}})


class TestWordBank:
    grader = WordBankGrader()
    question = make_question(
        "word_bank",
        {"tokens": [{"id": "t1", "text": "she"}, {"id": "t2", "text": "has"}, {"id": "t3", "text": "rizz"}]},
        ["t1", "t2", "t3"],
    )

    def test_exact_order_is_correct(self):
        result = self.grader.grade(self.question, {"tokenOrder": ["t1", "t2", "t3"]})
        assert result.correct is True
        assert result.normalized_response == {"tokenOrder": ["t1", "t2", "t3"]}

    def test_order_matters(self):
        assert self.grader.grade(self.question, {"order": ["t2", "t1", "t3"]}).correct is False

    def test_partial_order_is_wrong(self):
        assert self.grader.grade(self.question, {"tokenOrder": ["t1", "t2"]}).correct is False

    def test_object_correct_answer(self):
        question = make_question("word_bank", dict(self.question.options), {"order": ["t3", "t1"]})
        assert self.grader.grade(question, {"tokenOrder": ["t3", "t1"]}).correct is True

    def test_duplicate_tokens_rejected(self):
        with pytest.raises(InvalidResponseError, match="duplicate"):
            self.grader.grade(self.question, {"tokenOrder": ["t1", "t1"]})

    def test_unknown_token_rejected(self):
        with pytest.raises(InvalidResponseError, match="unknown"):
            self.grader.grade(self.question, {"tokenOrder": ["t9"]})

    def test_empty_order_rejected(self):
        with pytest.raises(InvalidResponseError, match="required"):
            self.grader.grade(self.question, {"tokenOrder": []})

    def test_too_few_tokens(self):
        question = make_question("word_bank", {"tokens": [{"id": "t1", "text": "x"}]}, ["t1"])
        with pytest.raises(InvalidQuestionDefinitionError):
            self.grader.build_payload(question)


class TestConversation:
    grader = ConversationGrader()
    question = make_question(
        "conversation",
        {
            "turns": [
                {"id": "turn_1", "prompt": "Hi", "replies": [{"id": "r1", "text": "Hey"}, {"id": "r2", "text": "Go"}]},
                {"id": "turn_2", "prompt": "Bye", "replies": [{"id": "r3", "text": "Cya"}, {"id": "r4", "text": "No"}]},
            ]
        },
        {"turn_1": "r1", "turn_2": "r3"},
    )

    def test_payload_keeps_turn_shape(self):
        turns = self.grader.build_payload(self.question)["turns"]
        assert [turn["id"] for turn in turns] == ["turn_1", "turn_2"]
        assert turns[0]["replies"] == [{"id": "r1", "text": "Hey"}, {"id": "r2", "text": "Go"}]

    def test_every_turn_correct(self):
        assert self.grader.grade(self.question, {"answers": {"turn_1": "r1", "turn_2": "r3"}}).correct is True

    def test_one_turn_wrong(self):
        assert self.grader.grade(self.question, {"answers": {"turn_1": "r2", "turn_2": "r3"}}).correct is False

    def test_reply_from_another_turn_rejected(self):
        with pytest.raises(InvalidResponseError, match="turn_1"):
            self.grader.grade(self.question, {"answers": {"turn_1": "r3", "turn_2": "r3"}})

    def test_correct_answer_missing_turn(self):
        question = make_question("conversation", dict(self.question.options), {"turn_1": "r1"})
        with pytest.raises(InvalidQuestionDefinitionError, match="missing turn turn_2"):
            self.grader.grade(question, {"answers": {"turn_1": "r1", "turn_2": "r3"}})


class TestMatchPairs:
    grader = MatchPairsGrader()
    question = make_question(
        "match_pairs",
        {
            "left": [{"id": "l1", "text": "rizz"}, {"id": "l2", "text": "cap"}],
            "right": [{"id": "m1", "text": "charm"}, {"id": "m2", "text": "lie"}],
        },
        {"l1": "m1", "l2": "m2"},
    )

    def test_exact_mapping(self):
        result = self.grader.grade(self.question, {"pairs": {"l1": "m1", "l2": "m2"}})
        assert result.correct is True
        assert result.normalized_response == {"pairs": {"l1": "m1", "l2": "m2"}}

    def test_answers_alias(self):
        assert self.grader.grade(self.question, {"answers": {"l1": "m2", "l2": "m1"}}).correct is False

    def test_missing_pair(self):
        with pytest.raises(InvalidResponseError, match="Missing pair for left item l2"):
            self.grader.grade(self.question, {"pairs": {"l1": "m1"}})

    def test_invalid_right_id(self):
        with pytest.raises(InvalidResponseError, match="Invalid right-side id"):
            self.grader.grade(self.question, {"pairs": {"l1": "m9", "l2": "m2"}})

    def test_too_few_items(self):
        question = make_question(
            "match_pairs",
            {"left": [{"id": "l1", "text": "a"}], "right": [{"id": "m1", "text": "b"}]},
            {"l1": "m1"},
        )
        with pytest.raises(InvalidQuestionDefinitionError):
            self.grader.build_payload(question)


class TestShortText:
    grader = ShortTextGrader()
    question = make_question("short_text", {"maxLength": 40}, {"accepted": ["no cap", "for real"]})

    def test_payload_defaults(self):
        assert self.grader.build_payload(self.question) == {
            "placeholder": "Type your answer",
            "minLength": 1,
            "maxLength": 40,
        }

    def test_whitespace_and_case_normalized(self):
        result = self.grader.grade(self.question, {"text": "  No   CAP "})
        assert result.correct is True
        assert result.normalized_response == {"text": "No   CAP"}

    def test_value_alias(self):
        assert self.grader.grade(self.question, {"value": "For Real"}).correct is True

    def test_wrong_text(self):
        assert self.grader.grade(self.question, {"text": "maybe"}).correct is False

    @pytest.mark.parametrize("correct_answer", ["rizz", ["RIZZ", "riz"], '["rizz"]'])
    def test_correct_answer_forms(self, correct_answer):
        question = make_question("short_text", {}, correct_answer)
        assert self.grader.grade(question, {"text": "Rizz"}).correct is True

    def test_missing_text(self):
        with pytest.raises(InvalidResponseError, match="missing text"):
            self.grader.grade(self.question, {})

    def test_no_accepted_answers(self):
        question = make_question("short_text", {}, {"accepted": ["  "]})
        with pytest.raises(InvalidQuestionDefinitionError):
            self.grader.grade(question, {"text": "anything"})

    def test_normalize_text(self):
        assert normalize_text("  Hello\t\nWORLD ") == "hello world"
        assert normalize_text("   ") is None
