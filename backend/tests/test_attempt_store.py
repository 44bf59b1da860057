"""Tests for attempt persistence and the compare-and-swap write."""
import pytest

from lesson_quiz.domain.quiz.attempts import ATTEMPTS_COLLECTION, RESULTS_COLLECTION, AttemptStore
from lesson_quiz.domain.quiz.models import AttemptStatus

from conftest import LEARNER_ID

LESSON_ID = "lesson-1"


@pytest.fixture
def attempts(store, clock):
    return AttemptStore(store, clock=clock)


async def test_create_and_find(attempts, clock):
    attempt = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 30)
    assert attempt.status == AttemptStatus.IN_PROGRESS.value
    assert attempt.current_question_index == 0
    assert attempt.max_score == 30
    assert attempt.question_ids == []
    assert attempt.started_at == clock()

    assert (await attempts.find_by_id(LEARNER_ID, LESSON_ID, attempt.id)).id == attempt.id
    assert (await attempts.find_active(LEARNER_ID, LESSON_ID)).id == attempt.id
    assert await attempts.find_by_id("someone-else", LESSON_ID, attempt.id) is None


async def test_only_one_active_attempt(attempts):
    first = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 30)
    second = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 30, ["q-9"])
    assert second.id == first.id
    assert second.question_ids == []


async def test_new_attempt_allowed_after_terminal(attempts, clock):
    first = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 30)
    await attempts.set_status(first, AttemptStatus.FAILED.value)
    clock.advance(seconds=5)
    second = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 10, ["q-2"])
    assert second.id != first.id
    assert second.question_ids == ["q-2"]
    assert (await attempts.find_latest(LEARNER_ID, LESSON_ID)).id == second.id
    assert (await attempts.find_active(LEARNER_ID, LESSON_ID)).id == second.id


async def test_update_if_applies_once(attempts):
    attempt = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 30)
    patch = {"current_question_index": 1, "correct_count": 1, "answers": {"q-1": {"choiceId": "A"}}}

    updated = await attempts.update_if(attempt.id, 0, AttemptStatus.IN_PROGRESS.value, patch)
    assert updated is not None
    assert updated.current_question_index == 1
    assert updated.answers == {"q-1": {"choiceId": "A"}}

    assert await attempts.update_if(attempt.id, 0, AttemptStatus.IN_PROGRESS.value, patch) is None


async def test_update_if_checks_status(attempts):
    attempt = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 30)
    result = await attempts.update_if(
        attempt.id, 0, AttemptStatus.PAUSED_NO_HEARTS.value, {"current_question_index": 1}
    )
    assert result is None


async def test_set_status_stamps_updated_at(attempts, clock):
    attempt = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 30)
    later = clock.advance(minutes=3)
    updated = await attempts.set_status(attempt, AttemptStatus.PAUSED_NO_HEARTS.value)
    assert updated.updated_at == later
    assert updated.is_active


async def test_set_status_keeps_a_concurrent_completion(attempts):
    read = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 10)
    passed = await attempts.update_if(
        read.id,
        0,
        AttemptStatus.IN_PROGRESS.value,
        {"current_question_index": 1, "status": AttemptStatus.PASSED.value},
    )
    assert passed is not None

    result = await attempts.set_status(read, AttemptStatus.PAUSED_NO_HEARTS.value)

    assert result.status == AttemptStatus.PASSED.value
    assert result.current_question_index == 1
    stored = await attempts.find_by_id(LEARNER_ID, LESSON_ID, read.id)
    assert stored.status == AttemptStatus.PASSED.value
    assert await attempts.find_active(LEARNER_ID, LESSON_ID) is None


async def test_record_result(attempts, store):
    await attempts.record_result(LEARNER_ID, "quiz-1", 20, 30, False, {"q-1": {"choiceId": "B"}})
    rows = await store.find(RESULTS_COLLECTION, {"user_id": LEARNER_ID})
    assert len(rows) == 1
    assert rows[0]["percentage"] == pytest.approx(66.666, rel=1e-3)
    assert rows[0]["passed"] is False
    assert rows[0]["answers"] == {"q-1": {"choiceId": "B"}}


async def test_question_ids_are_deduplicated_on_read(store, attempts):
    attempt = await attempts.create(LEARNER_ID, LESSON_ID, "quiz-1", 30, ["q-1", "q-1", " ", "q-2"])
    rows = await store.find(ATTEMPTS_COLLECTION, {"id": attempt.id})
    assert rows[0]["question_ids"] == ["q-1", "q-1", " ", "q-2"]
    assert attempt.question_ids == ["q-1", "q-2"]
