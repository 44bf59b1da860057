"""Demo lesson seeding: one published lesson whose quiz has a question of every type."""
import logging
from typing import Optional

from lesson_quiz.domain.common.store import DataStore
from lesson_quiz.domain.common.types import generate_id, utc_now
from lesson_quiz.domain.lessons.models import SectionId

logger = logging.getLogger(__name__)

DEMO_LESSON_TITLE = "Rizz"
DEMO_XP_REWARD = 50
DEMO_BADGE = "Rizz Scholar"

DEMO_QUESTIONS = [
    {
        "question_type": "multiple_choice",
        "question_text": "What does 'rizz' mean?",
        "options": {"choices": {"A": "Charm", "B": "Anger", "C": "Sleepiness", "D": "Hunger"}},
        "correct_answer": "A",
        "explanation": "Rizz is short for charisma.",
    },
    {
        "question_type": "true_false",
        "question_text": "'Rizz' is derived from 'charisma'.",
        "options": {},
        "correct_answer": "true",
        "explanation": "It clips the middle of the word.",
    },
    {
        "question_type": "cloze",
        "question_text": "He has so much ___.",
        "options": {
            "blankOptions": {
                "blank_1": [
                    {"id": "rizz", "text": "rizz"},
                    {"id": "mid", "text": "mid"},
                    {"id": "cap", "text": "cap"},
                ]
            }
        },
        "correct_answer": {"blank_1": "rizz"},
        "explanation": "Having rizz means being charming.",
    },
    {
        "question_type": "word_bank",
        "question_text": "Arrange the sentence.",
        "options": {
            "tokens": [
                {"id": "t1", "text": "she"},
                {"id": "t2", "text": "has"},
                {"id": "t3", "text": "rizz"},
            ]
        },
        "correct_answer": ["t1", "t2", "t3"],
        "explanation": None,
    },
    {
        "question_type": "conversation",
        "question_text": "Pick the best replies.",
        "options": {
            "turns": [
                {
                    "id": "turn_1",
                    "prompt": "Did you see how smooth he was?",
                    "replies": [
                        {"id": "r1", "text": "Yeah, unspoken rizz."},
                        {"id": "r2", "text": "He was very loud."},
                    ],
                },
                {
                    "id": "turn_2",
                    "prompt": "Could you do that?",
                    "replies": [
                        {"id": "r3", "text": "No cap, I'm working on it."},
                        {"id": "r4", "text": "What is a phone?"},
                    ],
                },
            ]
        },
        "correct_answer": {"turn_1": "r1", "turn_2": "r3"},
        "explanation": None,
    },
    {
        "question_type": "match_pairs",
        "question_text": "Match each term to its meaning.",
        "options": {
            "left": [{"id": "l1", "text": "rizz"}, {"id": "l2", "text": "cap"}],
            "right": [{"id": "m1", "text": "charm"}, {"id": "m2", "text": "a lie"}],
        },
        "correct_answer": {"l1": "m1", "l2": "m2"},
        "explanation": None,
    },
    {
        "question_type": "short_text",
        "question_text": "Type the word for charm.",
        "options": {"placeholder": "One word", "maxLength": 20},
        "correct_answer": {"accepted": ["rizz", "riz"]},
        "explanation": "Either spelling is accepted.",
    },
]


async def seed_demo_lesson(store: DataStore, learner_id: Optional[str] = None) -> str:
    """Insert the demo lesson, quiz and questions; enroll the learner if given.

    Returns the lesson id. The learner is enrolled with every section read,
    so the quiz is open straight away.
    """
    now = utc_now()
    lesson_id = generate_id()
    await store.insert(
        "lessons",
        {
            "id": lesson_id,
            "title": DEMO_LESSON_TITLE,
            "origin_content": "Clipped from 'charisma', popularized online around 2021.",
            "definition_content": "Skill in charming or attracting someone.",
            "usage_examples": ["He's got unspoken rizz.", "She rizzed him up."],
            "lore_content": "Named Oxford word of the year in 2023.",
            "evolution_content": "Spread from streaming chats into everyday speech.",
            "comparison_content": "Compare 'game' and 'swag'.",
            "xp_reward": DEMO_XP_REWARD,
            "badge_name": DEMO_BADGE,
            "completion_count": 0,
            "is_active": True,
            "is_published": True,
            "archived_at": None,
            "created_at": now,
            "updated_at": now,
        },
    )

    quiz_id = generate_id()
    await store.insert(
        "quizzes",
        {
            "id": quiz_id,
            "lesson_id": lesson_id,
            "title": f"{DEMO_LESSON_TITLE} quiz",
            "is_active": True,
            "archived_at": None,
            "created_at": now,
            "updated_at": now,
        },
    )
    for order_index, question in enumerate(DEMO_QUESTIONS):
        await store.insert(
            "quiz_questions",
            {"id": generate_id(), "quiz_id": quiz_id, "order_index": order_index, "points": 10, **question},
        )

    if learner_id:
        await store.insert(
            "user_lesson_progress",
            {
                "id": generate_id(),
                "user_id": learner_id,
                "lesson_id": lesson_id,
                "status": "in_progress",
                "progress_percentage": 100,
                "current_section": SectionId.COMPARISON,
                "started_at": now,
                "last_accessed_at": now,
                "created_at": now,
            },
        )
        existing = await store.find("profiles", {"user_id": learner_id}, limit=1)
        if not existing:
            await store.insert(
                "profiles",
                {
                    "id": generate_id(),
                    "user_id": learner_id,
                    "display_name": "Demo Learner",
                    "reputation_points": 0,
                    "current_streak": 0,
                    "longest_streak": 0,
                    "last_activity_date": None,
                    "updated_at": now,
                },
            )

    logger.info("Seeded demo lesson %s with %s questions", lesson_id, len(DEMO_QUESTIONS))
    return lesson_id
