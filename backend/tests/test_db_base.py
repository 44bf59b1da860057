"""Tests for engine URL handling."""
import ssl

from lesson_quiz.infra.db.base import asyncpg_url


def test_plain_postgres_url_gets_asyncpg_driver():
    url, connect_args = asyncpg_url("postgresql://u:p@db.example.test:5432/quiz")
    assert url.drivername == "postgresql+asyncpg"
    assert url.database == "quiz"
    assert connect_args == {}


def test_sslmode_require_moves_to_connect_args():
    url, connect_args = asyncpg_url("postgres://u:p@db.example.test/quiz?sslmode=require&application_name=quiz")
    assert url.drivername == "postgresql+asyncpg"
    assert "sslmode" not in url.query
    assert url.query["application_name"] == "quiz"
    assert isinstance(connect_args["ssl"], ssl.SSLContext)
    assert connect_args["ssl"].verify_mode == ssl.CERT_NONE


def test_sslmode_require_with_verification():
    _, connect_args = asyncpg_url("postgresql+asyncpg://u@db.example.test/quiz?sslmode=require", ssl_verify=True)
    assert connect_args == {"ssl": True}
