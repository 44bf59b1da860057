"""Quiz attempt engine: the lesson quiz state machine."""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from lesson_quiz.domain.common.errors import (
    ConflictError,
    NotFoundError,
    StaleAttemptError,
    UnauthorizedError,
    ValidationError,
)
from lesson_quiz.domain.common.types import Clock, utc_now
from lesson_quiz.domain.lessons.models import QUIZ_STOP_ID, Lesson, LessonSection, Quiz
from lesson_quiz.domain.lessons.services import LessonContentService
from lesson_quiz.domain.quiz.attempts import AttemptStore
from lesson_quiz.domain.quiz.graders.registry import GraderRegistry
from lesson_quiz.domain.quiz.hearts import HeartsLedger
from lesson_quiz.domain.quiz.models import (
    AnswerOutcome,
    Attempt,
    AttemptStatus,
    HeartsState,
    HeartsStatus,
    NextStopType,
    ProgressMetadata,
    Question,
    QuestionView,
    QuizState,
    QuizStatus,
    RestartMode,
)
from lesson_quiz.domain.quiz.ordering import filter_questions, max_score, questions_for_attempt
from lesson_quiz.domain.rewards.services import RewardGranter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuizContext:
    """Everything an operation needs about the lesson and its active quiz."""
    lesson: Lesson
    sections: list[LessonSection]
    quiz: Quiz
    questions: list[Question]
    max_score: int


class QuizAttemptEngine:
    """Drives attempts through in_progress, paused_no_hearts, passed and failed."""

    def __init__(
        self,
        registry: GraderRegistry,
        hearts: HeartsLedger,
        attempts: AttemptStore,
        lessons: LessonContentService,
        rewards: RewardGranter,
        clock: Clock = utc_now,
    ):
        self.registry = registry
        self.hearts = hearts
        self.attempts = attempts
        self.lessons = lessons
        self.rewards = rewards
        self.clock = clock

    async def get_state(self, learner_id: str, lesson_id: str) -> QuizState:
        """Current quiz state, creating or reconciling the attempt as needed."""
        self._require_learner(learner_id)
        context = await self._load_context(learner_id, lesson_id)
        hearts = await self.hearts.ensure(learner_id)
        active = await self.attempts.find_active(learner_id, lesson_id)
        if active is not None:
            active = await self._reconcile(active, hearts)
        latest = active or await self.attempts.find_latest(learner_id, lesson_id)
        if active is not None and not active.is_active:
            # Completed by a concurrent answer.
            active = None
        questions = self._questions(context, latest) if latest else list(context.questions)

        if latest is not None and latest.status == AttemptStatus.PASSED.value:
            return self._state(latest, questions, hearts, QuizStatus.PASSED, can_answer=False)

        if active is None:
            if latest is not None and latest.status == AttemptStatus.FAILED.value:
                if hearts.hearts_remaining > 0 and latest.wrong_question_ids:
                    retry = filter_questions(context.questions, latest.wrong_question_ids)
                    if retry:
                        active = await self.attempts.create(
                            learner_id,
                            lesson_id,
                            context.quiz.id,
                            max_score(retry),
                            [question.id for question in retry],
                        )
                        return self._state(
                            active, self._questions(context, active), hearts, QuizStatus.IN_PROGRESS, can_answer=True
                        )
                status = QuizStatus.BLOCKED_HEARTS if hearts.hearts_remaining <= 0 else QuizStatus.FAILED
                return self._state(
                    latest, questions, hearts, status, can_answer=False, can_restart=hearts.hearts_remaining > 0
                )

            if hearts.hearts_remaining <= 0:
                # Viewing while out of hearts does not open an attempt.
                return QuizState(
                    attempt_id=None,
                    status=QuizStatus.BLOCKED_HEARTS.value,
                    question_index=0,
                    total_questions=len(questions),
                    correct_count=0,
                    earned_score=0,
                    max_score=context.max_score,
                    current_question=None,
                    hearts=HeartsStatus.from_state(hearts),
                    can_answer=False,
                    can_restart=False,
                    wrong_question_ids=[],
                )
            active = await self.attempts.create(learner_id, lesson_id, context.quiz.id, context.max_score)

        blocked = hearts.hearts_remaining <= 0
        return self._state(
            active,
            self._questions(context, active),
            hearts,
            QuizStatus.BLOCKED_HEARTS if blocked else QuizStatus.IN_PROGRESS,
            can_answer=not blocked,
        )

    async def answer(
        self,
        learner_id: str,
        lesson_id: str,
        attempt_id: str,
        question_id: str,
        response: Optional[dict[str, Any]],
    ) -> AnswerOutcome:
        """Grade the current question and advance the attempt with a conditional write."""
        self._require_learner(learner_id)
        context = await self._load_context(learner_id, lesson_id)
        hearts = await self.hearts.ensure(learner_id)
        attempt = await self.attempts.find_by_id(learner_id, lesson_id, attempt_id)
        if attempt is None:
            raise NotFoundError("Quiz attempt", attempt_id, message="Quiz attempt not found")
        questions = self._questions(context, attempt)

        if attempt.is_terminal:
            raise ConflictError("Quiz attempt already completed")

        if hearts.hearts_remaining <= 0:
            attempt = await self.attempts.set_status(attempt, AttemptStatus.PAUSED_NO_HEARTS.value)
            if attempt.is_terminal:
                raise ConflictError("Quiz attempt already completed")
            return AnswerOutcome(
                attempt_id=attempt.id,
                status=QuizStatus.BLOCKED_HEARTS.value,
                correct=False,
                explanation=None,
                question_index=attempt.current_question_index,
                total_questions=len(questions),
                correct_count=attempt.correct_count,
                earned_score=attempt.earned_score,
                max_score=attempt.max_score,
                passed=False,
                completed=False,
                blocked_by_hearts=True,
                next_question=None,
                hearts=HeartsStatus.from_state(hearts),
                wrong_question_ids=list(attempt.wrong_question_ids),
            )

        index = attempt.current_question_index
        if index < 0 or index >= len(questions):
            raise ConflictError("Quiz attempt is already at the end")
        question = questions[index]
        if question.id != question_id:
            raise ConflictError("Answer must be submitted for the current question")
        if question.id in attempt.answers:
            raise ConflictError("Question already answered")

        result = self.registry.require(question.question_type).grade(question, response)
        correct = result.correct

        answers = dict(attempt.answers)
        answers[question.id] = result.normalized_response
        wrong_ids = list(attempt.wrong_question_ids)
        if not correct and question.id not in wrong_ids:
            wrong_ids.append(question.id)
        correct_count = attempt.correct_count + (1 if correct else 0)
        earned_score = attempt.earned_score + (question.score_points if correct else 0)
        attempt_max_score = attempt.max_score or context.max_score
        projected_hearts = hearts.hearts_remaining if correct else max(0, hearts.hearts_remaining - 1)

        next_index = index + 1
        completed = next_index >= len(questions)
        blocked = not completed and projected_hearts <= 0
        # Lesson quizzes pass only with every question of the attempt correct.
        passed = completed and correct_count >= len(questions)
        if completed:
            new_status = AttemptStatus.PASSED if passed else AttemptStatus.FAILED
        elif blocked:
            new_status = AttemptStatus.PAUSED_NO_HEARTS
        else:
            new_status = AttemptStatus.IN_PROGRESS

        now = self.clock()
        updated = await self.attempts.update_if(
            attempt.id,
            index,
            attempt.status,
            {
                "answers": answers,
                "wrong_question_ids": wrong_ids,
                "current_question_index": next_index,
                "correct_count": correct_count,
                "earned_score": earned_score,
                "max_score": attempt_max_score,
                "status": new_status.value,
                "updated_at": now,
                "completed_at": now if completed else None,
            },
        )
        if updated is None:
            logger.info("Stale answer for attempt %s at index %s", attempt.id, index)
            raise StaleAttemptError()

        if not correct:
            hearts = await self.hearts.consume(learner_id, hearts)

        if completed:
            logger.info(
                "Attempt %s completed: %s (%s/%s correct)",
                attempt.id,
                new_status.value,
                correct_count,
                len(questions),
            )
            await self.attempts.record_result(
                learner_id, context.quiz.id, earned_score, attempt_max_score, passed, answers
            )
            if passed:
                await self._complete_lesson(learner_id, lesson_id, context)

        next_question = None
        if not completed and not blocked:
            next_question = self._view(questions[next_index])

        if passed:
            outcome_status = QuizStatus.PASSED
        elif completed:
            outcome_status = QuizStatus.FAILED
        elif blocked:
            outcome_status = QuizStatus.BLOCKED_HEARTS
        else:
            outcome_status = QuizStatus.IN_PROGRESS

        return AnswerOutcome(
            attempt_id=attempt.id,
            status=outcome_status.value,
            correct=correct,
            explanation=question.explanation,
            question_index=next_index,
            total_questions=len(questions),
            correct_count=correct_count,
            earned_score=earned_score,
            max_score=attempt_max_score,
            passed=passed,
            completed=completed,
            blocked_by_hearts=blocked,
            next_question=next_question,
            hearts=HeartsStatus.from_state(hearts),
            wrong_question_ids=wrong_ids,
        )

    async def restart(self, learner_id: str, lesson_id: str, mode: Optional[str] = None) -> QuizState:
        """Open a new attempt, or return the one already in flight."""
        self._require_learner(learner_id)
        restart_mode = self._restart_mode(mode)
        context = await self._load_context(learner_id, lesson_id)
        hearts = await self.hearts.ensure(learner_id)
        if hearts.hearts_remaining <= 0:
            raise ConflictError("You are out of hearts")

        active = await self.attempts.find_active(learner_id, lesson_id)
        if active is not None:
            return self._state(
                active, self._questions(context, active), hearts, QuizStatus.IN_PROGRESS, can_answer=True
            )

        latest = await self.attempts.find_latest(learner_id, lesson_id)
        if latest is not None and latest.status == AttemptStatus.PASSED.value:
            raise ConflictError("Quiz already passed")

        question_ids = None
        score = context.max_score
        if restart_mode is RestartMode.WRONG_ONLY and latest is not None and latest.wrong_question_ids:
            retry = filter_questions(context.questions, latest.wrong_question_ids)
            if retry:
                question_ids = [question.id for question in retry]
                score = max_score(retry)

        attempt = await self.attempts.create(learner_id, lesson_id, context.quiz.id, score, question_ids)
        return self._state(
            attempt, self._questions(context, attempt), hearts, QuizStatus.IN_PROGRESS, can_answer=True
        )

    async def hearts_status(self, learner_id: str) -> HeartsStatus:
        """Current hearts, applying regeneration."""
        self._require_learner(learner_id)
        return HeartsStatus.from_state(await self.hearts.ensure(learner_id))

    async def get_progress_metadata(self, learner_id: str, lesson_id: str) -> ProgressMetadata:
        """Lesson stops (sections plus quiz) and where the learner stands."""
        self._require_learner(learner_id)
        lesson = await self.lessons.get_lesson(lesson_id)
        sections = lesson.sections
        progress = await self.lessons.get_progress(learner_id, lesson_id, sections)
        hearts = await self.hearts.ensure(learner_id)
        has_quiz = await self.lessons.find_active_quiz(lesson_id) is not None

        completed_sections = max(0, min(progress.completed_sections, len(sections)))
        total_stops = len(sections) + (1 if has_quiz else 0)
        current_stop_id = sections[completed_sections - 1].id if completed_sections > 0 else None

        def metadata(completed_stops, stop_id, remaining, quiz_status, next_stop) -> ProgressMetadata:
            return ProgressMetadata(
                total_stops=total_stops,
                completed_stops=completed_stops,
                current_stop_id=stop_id,
                remaining_stops=remaining,
                quiz_status=quiz_status.value,
                hearts_remaining=hearts.hearts_remaining,
                hearts_refill_at=hearts.refill_at,
                next_stop_type=next_stop.value,
            )

        if not progress.is_enrolled or completed_sections < len(sections):
            if not progress.is_enrolled and not sections:
                next_stop = NextStopType.QUIZ if has_quiz else NextStopType.DONE
            else:
                next_stop = NextStopType.SECTION
            return metadata(
                completed_sections,
                current_stop_id,
                max(0, total_stops - completed_sections),
                QuizStatus.LOCKED,
                next_stop,
            )

        if not has_quiz:
            last_stop = sections[-1].id if sections else None
            return metadata(total_stops, last_stop, 0, QuizStatus.LOCKED, NextStopType.DONE)

        latest = await self.attempts.find_latest(learner_id, lesson_id)
        if latest is not None and latest.status == AttemptStatus.PASSED.value:
            return metadata(total_stops, QUIZ_STOP_ID, 0, QuizStatus.PASSED, NextStopType.DONE)
        if hearts.hearts_remaining <= 0:
            return metadata(len(sections), QUIZ_STOP_ID, 1, QuizStatus.BLOCKED_HEARTS, NextStopType.QUIZ)
        quiz_status = QuizStatus.IN_PROGRESS if latest is not None and latest.is_active else QuizStatus.AVAILABLE
        return metadata(len(sections), QUIZ_STOP_ID, 1, quiz_status, NextStopType.QUIZ)

    # Internals

    async def _load_context(self, learner_id: str, lesson_id: str) -> QuizContext:
        lesson = await self.lessons.get_lesson(lesson_id)
        sections = lesson.sections
        progress = await self.lessons.get_progress(learner_id, lesson_id, sections)
        if not progress.is_enrolled:
            raise ConflictError("Enroll before starting the quiz")
        if progress.completed_sections < len(sections):
            raise ConflictError("Complete all lesson sections before the quiz")
        quiz = await self.lessons.find_active_quiz(lesson_id)
        if quiz is None:
            raise NotFoundError("Quiz", message="Quiz not available for this lesson")
        questions = await self.lessons.get_questions(quiz.id)
        if not questions:
            raise NotFoundError("Quiz questions", message="Quiz questions not available")
        for question in questions:
            self.registry.require(question.question_type)
        return QuizContext(
            lesson=lesson,
            sections=sections,
            quiz=quiz,
            questions=questions,
            max_score=max_score(questions),
        )

    async def _reconcile(self, attempt: Attempt, hearts: HeartsState) -> Attempt:
        """Pause or resume an active attempt to match the learner's hearts."""
        if attempt.status == AttemptStatus.PAUSED_NO_HEARTS.value and hearts.hearts_remaining > 0:
            return await self.attempts.set_status(attempt, AttemptStatus.IN_PROGRESS.value)
        if attempt.status == AttemptStatus.IN_PROGRESS.value and hearts.hearts_remaining <= 0:
            return await self.attempts.set_status(attempt, AttemptStatus.PAUSED_NO_HEARTS.value)
        return attempt

    async def _complete_lesson(self, learner_id: str, lesson_id: str, context: QuizContext) -> None:
        await self.lessons.complete_lesson(learner_id, lesson_id, context.sections)
        granted = await self.rewards.grant_if_first_pass(
            learner_id, lesson_id, context.lesson.xp_reward, context.lesson.badge_name
        )
        if granted:
            await self.lessons.increment_completion_count(lesson_id)

    def _questions(self, context: QuizContext, attempt: Attempt) -> list[Question]:
        return questions_for_attempt(context.questions, attempt.id, attempt.question_ids)

    def _view(self, question: Question) -> QuestionView:
        grader = self.registry.require(question.question_type)
        return QuestionView(
            id=question.id,
            question_type=question.question_type,
            prompt=question.question_text,
            payload=grader.build_payload(question),
            explanation=question.explanation,
            points=question.score_points,
            order_index=question.order_index,
            media_url=question.media_url,
            template_version=question.template_version,
        )

    def _state(
        self,
        attempt: Attempt,
        questions: list[Question],
        hearts: HeartsState,
        status: QuizStatus,
        can_answer: bool,
        can_restart: bool = False,
    ) -> QuizState:
        index = attempt.current_question_index
        current = None
        if can_answer and 0 <= index < len(questions):
            current = self._view(questions[index])
        return QuizState(
            attempt_id=attempt.id,
            status=status.value,
            question_index=index,
            total_questions=len(questions),
            correct_count=attempt.correct_count,
            earned_score=attempt.earned_score,
            max_score=attempt.max_score,
            current_question=current,
            hearts=HeartsStatus.from_state(hearts),
            can_answer=can_answer,
            can_restart=can_restart,
            wrong_question_ids=list(attempt.wrong_question_ids),
        )

    @staticmethod
    def _restart_mode(mode: Optional[str]) -> RestartMode:
        normalized = (mode or "").strip().lower()
        if not normalized or normalized == RestartMode.WRONG_ONLY.value:
            return RestartMode.WRONG_ONLY
        if normalized == RestartMode.FULL.value:
            return RestartMode.FULL
        raise ValidationError(f"Unsupported restart mode: {mode}")

    @staticmethod
    def _require_learner(learner_id: Optional[str]) -> None:
        if not learner_id or not str(learner_id).strip():
            raise UnauthorizedError()
