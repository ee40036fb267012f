"""Tests for settings parsing and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from subplatform.config import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestDialect:
    def test_default_is_sqlite(self):
        s = _settings()
        assert s.is_sqlite
        assert not s.is_postgres
        assert s.DATABASE_URL.startswith("sqlite+aiosqlite")

    def test_detects_postgres_from_url(self):
        s = _settings(DATABASE_URL="postgresql+asyncpg://u:p@db:5432/subs")
        assert s.is_postgres
        assert s.DB_DIALECT == "postgres"

    def test_composes_postgres_url_from_parts(self):
        s = _settings(
            DB_DIALECT="postgres",
            DB_HOST="db.internal",
            DB_PORT=6543,
            DB_NAME="billing",
            DB_USER="svc",
            DB_PASSWORD="pw",
        )
        assert s.DATABASE_URL == "postgresql+asyncpg://svc:pw@db.internal:6543/billing"
        assert s.is_postgres

    def test_parts_ignored_without_password(self):
        s = _settings(DB_DIALECT="postgres", DB_HOST="db.internal")
        assert s.is_sqlite


class TestCredentialsSettings:
    @pytest.mark.parametrize("rounds", [3, 32])
    def test_rounds_out_of_range(self, rounds):
        with pytest.raises(ValidationError):
            _settings(BCRYPT_ROUNDS=rounds)

    def test_rounds_in_range(self):
        assert _settings(BCRYPT_ROUNDS=12).BCRYPT_ROUNDS == 12

    @pytest.mark.parametrize("tag", ["", "a_b"])
    def test_bad_key_tag(self, tag):
        with pytest.raises(ValidationError):
            _settings(API_KEY_TAG=tag)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("API_KEY_TAG", "live")
        monkeypatch.setenv("SEED_DEFAULT_ADMIN", "false")
        s = _settings()
        assert s.API_KEY_TAG == "live"
        assert s.SEED_DEFAULT_ADMIN is False
