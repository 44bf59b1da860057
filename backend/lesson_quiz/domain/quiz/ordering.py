"""Per-attempt question ordering.

A full-set attempt shuffles questions by an FNV-1a 64-bit hash of
``"{attempt_id}|{question_id}"``: stable for one attempt, different across
attempts. Hashes compare as signed 64-bit integers.
"""
from typing import Optional, Sequence

from lesson_quiz.domain.quiz.models import Question

FNV_OFFSET_BASIS = 1469598103934665603
FNV_PRIME = 1099511628211
_MASK_64 = (1 << 64) - 1


def question_seed(attempt_id: str, question_id: Optional[str]) -> int:
    """Signed 64-bit FNV-1a hash of the attempt/question pair."""
    material = f"{attempt_id}|{question_id or ''}"
    data = material.encode("utf-16-be")
    value = FNV_OFFSET_BASIS
    # One step per UTF-16 code unit.
    for i in range(0, len(data), 2):
        value ^= (data[i] << 8) | data[i + 1]
        value = (value * FNV_PRIME) & _MASK_64
    return value - (1 << 64) if value >= (1 << 63) else value


def order_questions(questions: Sequence[Question], attempt_id: Optional[str]) -> list[Question]:
    """Deterministic pseudo-random order for one attempt, tie-broken by question id."""
    ordered = list(questions)
    if len(ordered) <= 1 or not attempt_id or not attempt_id.strip():
        return ordered
    ordered.sort(key=lambda question: (question_seed(attempt_id, question.id), question.id or ""))
    return ordered


def filter_questions(questions: Sequence[Question], question_ids: Sequence[str]) -> list[Question]:
    """Questions for the given ids, in id order; unknown ids are skipped."""
    by_id = {question.id: question for question in questions if question.id}
    return [by_id[question_id] for question_id in question_ids if question_id in by_id]


def questions_for_attempt(
    questions: Sequence[Question],
    attempt_id: Optional[str],
    question_ids: Sequence[str],
) -> list[Question]:
    """The ordered question list an attempt covers."""
    if question_ids:
        subset = filter_questions(questions, question_ids)
        if subset:
            return subset
    return order_questions(questions, attempt_id)


def max_score(questions: Sequence[Question]) -> int:
    """Total points across questions."""
    return sum(question.score_points for question in questions)
