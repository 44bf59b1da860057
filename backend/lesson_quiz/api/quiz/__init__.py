"""Quiz API routes."""
from fastapi import APIRouter

from lesson_quiz.api.quiz import routes_hearts, routes_quiz

router = APIRouter()

router.include_router(routes_quiz.router, prefix="/lessons", tags=["quiz"])
router.include_router(routes_hearts.router, prefix="/hearts", tags=["hearts"])
