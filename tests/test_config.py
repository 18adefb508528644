import pytest

from pipelines.config import CDIP_BASE_URL, NDBC_BASE_URL, FeedSettings

ENV_KEYS = (
    "NDBC_BASE_URL",
    "CDIP_BASE_URL",
    "SURF_USER_AGENT",
    "HTTP_TIMEOUT_SECONDS",
    "OBSERVATION_CACHE_TTL_SECONDS",
    "OBSERVATION_CACHE_MAX_ENTRIES",
)


@pytest.fixture()
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_from_env_defaults(clean_env):
    settings = FeedSettings.from_env()

    assert settings == FeedSettings()
    assert settings.ndbc_base_url == NDBC_BASE_URL
    assert settings.cdip_base_url == CDIP_BASE_URL
    assert settings.cache_ttl_seconds == 300.0


def test_from_env_reads_overrides(clean_env):
    clean_env.setenv("NDBC_BASE_URL", "http://mirror.test/ndbc/")
    clean_env.setenv("CDIP_BASE_URL", "http://mirror.test/cdip//")
    clean_env.setenv("SURF_USER_AGENT", "spot-checker/2.0")
    clean_env.setenv("HTTP_TIMEOUT_SECONDS", "7.5")
    clean_env.setenv("OBSERVATION_CACHE_TTL_SECONDS", "60")
    clean_env.setenv("OBSERVATION_CACHE_MAX_ENTRIES", "32")

    settings = FeedSettings.from_env()

    assert settings.ndbc_base_url == "http://mirror.test/ndbc"
    assert settings.cdip_base_url == "http://mirror.test/cdip"
    assert settings.user_agent == "spot-checker/2.0"
    assert settings.timeout_seconds == 7.5
    assert settings.cache_ttl_seconds == 60.0
    assert settings.cache_max_entries == 32


def test_from_env_rejects_non_numeric_cache_size(clean_env):
    clean_env.setenv("OBSERVATION_CACHE_MAX_ENTRIES", "lots")

    with pytest.raises(ValueError):
        FeedSettings.from_env()
