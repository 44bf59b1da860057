"""Tests for per-attempt question ordering."""
from lesson_quiz.domain.quiz.models import Question
from lesson_quiz.domain.quiz.ordering import (
    filter_questions,
    max_score,
    order_questions,
    question_seed,
    questions_for_attempt,
)


def q(question_id: str, points=10) -> Question:
    return Question(
        id=question_id,
        quiz_id="quiz",
        question_type="multiple_choice",
        question_text=None,
        options={},
        correct_answer="A",
        points=points,
    )


QUESTIONS = [q("q-1"), q("q-2"), q("q-3"), q("q-4")]


def test_seed_is_signed_fnv1a_64():
    assert question_seed("att-1", "q-1") == 5179094302108796741
    assert question_seed("att-2", "q-1") == -8639625076987593092
    # "|" alone, the material when both ids are empty
    assert question_seed("", None) == 4953299696095185485


def test_order_is_deterministic_per_attempt():
    assert [x.id for x in order_questions(QUESTIONS, "att-1")] == ["q-4", "q-2", "q-3", "q-1"]
    assert [x.id for x in order_questions(QUESTIONS, "att-2")] == ["q-4", "q-1", "q-3", "q-2"]
    assert [x.id for x in order_questions(list(reversed(QUESTIONS)), "att-2")] == ["q-4", "q-1", "q-3", "q-2"]


def test_order_is_a_permutation():
    ordered = order_questions(QUESTIONS, "attempt-x")
    assert sorted(x.id for x in ordered) == ["q-1", "q-2", "q-3", "q-4"]


def test_blank_attempt_keeps_authoring_order():
    assert order_questions(QUESTIONS, None) == QUESTIONS
    assert order_questions(QUESTIONS, "  ") == QUESTIONS


def test_filter_keeps_id_order_and_skips_unknown():
    assert [x.id for x in filter_questions(QUESTIONS, ["q-3", "nope", "q-1"])] == ["q-3", "q-1"]


def test_questions_for_attempt_uses_subset_when_given():
    assert [x.id for x in questions_for_attempt(QUESTIONS, "att-1", ["q-4", "q-2"])] == ["q-4", "q-2"]


def test_questions_for_attempt_falls_back_to_full_set():
    assert [x.id for x in questions_for_attempt(QUESTIONS, "att-2", ["gone"])] == ["q-4", "q-1", "q-3", "q-2"]
    assert [x.id for x in questions_for_attempt(QUESTIONS, "att-2", [])] == ["q-4", "q-1", "q-3", "q-2"]


def test_max_score_defaults_unset_and_non_positive_points():
    assert max_score([q("a", 5), q("b", None), q("c", 0), q("d", -3)]) == 35
