"""API dependencies."""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lesson_quiz.domain.common.errors import UnauthorizedError
from lesson_quiz.domain.common.store import DataStore
from lesson_quiz.domain.lessons.services import LessonContentService
from lesson_quiz.domain.quiz.attempts import AttemptStore
from lesson_quiz.domain.quiz.graders.registry import GraderRegistry, build_default_registry
from lesson_quiz.domain.quiz.hearts import HeartsLedger
from lesson_quiz.domain.quiz.services import QuizAttemptEngine
from lesson_quiz.domain.rewards.services import RewardGranter
from lesson_quiz.infra.store.factory import build_stores
from lesson_quiz.infra.vendors.identity_client import IdentityClient
from lesson_quiz.settings import get_settings, settings

bearer_scheme = HTTPBearer(auto_error=False)

_grader_registry = build_default_registry()


def get_grader_registry() -> GraderRegistry:
    """Process-wide grader registry, built once at import."""
    return _grader_registry


def get_identity_client() -> IdentityClient:
    return IdentityClient()


async def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Bearer token from the Authorization header."""
    if credentials is None or not credentials.credentials.strip():
        raise UnauthorizedError()
    return credentials.credentials.strip()


async def get_current_learner_id(
    token: str = Depends(get_access_token),
    identity: IdentityClient = Depends(get_identity_client),
) -> str:
    """Resolve the learner behind the bearer token."""
    if settings.auth_mode == "dev_token":
        return token
    learner_id = await identity.resolve_user_id(token)
    if not learner_id:
        raise UnauthorizedError("Invalid access token")
    return learner_id


def get_stores(token: str = Depends(get_access_token)) -> tuple[DataStore, DataStore]:
    """(learner-scoped store, privileged store) for this request."""
    return build_stores(get_settings(), token)


def get_quiz_engine(
    stores: tuple[DataStore, DataStore] = Depends(get_stores),
    registry: GraderRegistry = Depends(get_grader_registry),
) -> QuizAttemptEngine:
    """Build the quiz engine over this request's stores."""
    store, admin_store = stores
    return QuizAttemptEngine(
        registry=registry,
        hearts=HeartsLedger(store, max_hearts=settings.max_hearts, refill_hours=settings.heart_refill_hours),
        attempts=AttemptStore(store),
        lessons=LessonContentService(store, admin_store),
        rewards=RewardGranter(store, admin_store),
    )
