"""Application settings and configuration."""
import os
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from lesson_quiz.config_store import ConfigStore


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Lesson Quiz API"
    app_version: str = "0.1.0"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    log_level: str = "INFO"

    # Store: "rest" talks to the hosted data API, "sql" to database_url directly
    store_backend: Literal["rest", "sql"] = "rest"
    store_rest_url: str = "http://localhost:54321/rest/v1"
    store_auth_url: str = "http://localhost:54321/auth/v1"
    store_anon_key: str = ""
    store_service_role_key: str = ""
    store_timeout_seconds: float = 10.0

    # Identity: "remote" asks the auth API; "dev_token" treats the bearer token as the learner id (local sql only)
    auth_mode: Literal["remote", "dev_token"] = "remote"

    # Database
    database_url: str = "sqlite+aiosqlite:///./lesson_quiz.db"
    database_echo: bool = False
    database_ssl_verify: bool = False

    # Hearts
    max_hearts: int = 5
    heart_refill_hours: int = 24


# Config file path: CONFIG_FILE env or default backend/config.yaml (config file is master over env)
_config_file = os.environ.get("CONFIG_FILE") or str(
    Path(__file__).resolve().parent.parent / "config.yaml"
)
_config_store = ConfigStore(Settings, _config_file)
_config_store.load_initial()


class _SettingsProxy:
    """Proxy so 'settings.attr' always returns current value from config store (push/reload safe)."""

    def __getattr__(self, name: str):
        return getattr(_config_store.get_settings(), name)


settings: Settings = _SettingsProxy()  # type: ignore[assignment]


def get_settings() -> Settings:
    """Return current Settings snapshot (use after push/reload for latest values)."""
    return _config_store.get_settings()


def get_config_store() -> ConfigStore:
    """Return the config store for update(), reload_from_file(), clear_overrides()."""
    return _config_store
