"""Tests for settings parsing."""

import pytest

from souq_trust.settings import Settings


@pytest.mark.parametrize(
    "raw",
    [
        "https://souq.example,http://localhost:3000",
        '["https://souq.example", "http://localhost:3000"]',
        " https://souq.example , http://localhost:3000 ,",
    ],
)
def test_cors_origins_formats(raw: str, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CORS_ORIGINS", raw)
    assert Settings().cors_origins == ["https://souq.example", "http://localhost:3000"]


def test_database_url_normalized_for_asyncpg():
    settings = Settings(database_url="postgresql://u:p@postgres.railway.internal:5432/souq")
    assert settings.async_database_url.startswith("postgresql+asyncpg://")
    assert settings.asyncpg_connect_args == {"ssl": False, "timeout": 20}


def test_trust_tunables_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    monkeypatch.setenv("REVIEW_REQUEST_BATCH_SIZE", "25")
    monkeypatch.setenv("TRUST_METRICS_CACHE_TTL", "60")

    settings = Settings()

    assert settings.cron_secret == "s3cret"
    assert settings.review_request_batch_size == 25
    assert settings.trust_metrics_cache_ttl == 60
    assert settings.cache_enabled is True
