"""Builds the learner-scoped and privileged stores for one request."""
from lesson_quiz.domain.common.store import DataStore
from lesson_quiz.infra.store.rest_store import RestDataStore
from lesson_quiz.settings import Settings


def build_stores(settings: Settings, access_token: str) -> tuple[DataStore, DataStore]:
    """Return (store, admin_store). The SQL backend has no row-level security, so both are one store."""
    if settings.store_backend == "sql":
        from lesson_quiz.infra.db.session import get_session_factory
        from lesson_quiz.infra.db.sql_store import SqlDataStore

        store = SqlDataStore(get_session_factory())
        return store, store

    store = RestDataStore(
        settings.store_rest_url,
        settings.store_anon_key,
        access_token=access_token,
        timeout=settings.store_timeout_seconds,
    )
    admin_store = RestDataStore(
        settings.store_rest_url,
        settings.store_service_role_key,
        timeout=settings.store_timeout_seconds,
    )
    return store, admin_store
