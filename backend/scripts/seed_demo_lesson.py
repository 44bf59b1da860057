"""
Seed a demo lesson (every question type) into the SQL store and enroll a learner.

Usage (from repo root):
  cd backend && STORE_BACKEND=sql .venv/bin/python scripts/seed_demo_lesson.py demo-learner

With AUTH_MODE=dev_token the learner id doubles as the bearer token:
  curl -H "Authorization: Bearer demo-learner" localhost:8000/v1/lessons/<id>/quiz/state
"""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from lesson_quiz.infra.db.seed import seed_demo_lesson
from lesson_quiz.infra.db.session import create_tables, dispose_engine, get_session_factory
from lesson_quiz.infra.db.sql_store import SqlDataStore
from lesson_quiz.settings import settings

DEFAULT_LEARNER_ID = "demo-learner"


async def seed(learner_id: str) -> None:
    print(f"Database: {settings.database_url}")
    await create_tables()
    try:
        lesson_id = await seed_demo_lesson(SqlDataStore(get_session_factory()), learner_id)
    finally:
        await dispose_engine()
    print(f"Seeded lesson {lesson_id} for learner {learner_id}")
    print(f"  GET {settings.api_v1_prefix}/lessons/{lesson_id}/quiz/state")


if __name__ == "__main__":
    asyncio.run(seed(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_LEARNER_ID))
