"""Pytest configuration and shared fixtures."""

import pytest

from resilient_llm.openrouter import OpenRouterConfig, RetryConfig

from .fixtures.responses import SAMPLE_MESSAGES, SAMPLE_PERSON_SCHEMA
from .fixtures.streams import SleepRecorder

TEST_API_KEY = "sk-or-v1-test0123456789abcdef"


@pytest.fixture
def sleeps():
    """Recorder standing in for asyncio.sleep."""
    return SleepRecorder()


@pytest.fixture
def fast_retry():
    """Retry policy with no real waiting."""
    return RetryConfig(max_retries=3, initial_delay=0.0, max_delay=0.0, jitter=False)


@pytest.fixture
def config():
    """Client config with zero backoff so tests never sleep."""
    return OpenRouterConfig(
        api_key=TEST_API_KEY,
        retry=RetryConfig(max_retries=3, initial_delay=0.0, max_delay=0.0, jitter=False),
        fallback_retry=RetryConfig(max_retries=2, initial_delay=0.0, max_delay=0.0, jitter=False),
        log_requests=False,
    )


@pytest.fixture
def messages():
    """Sample chat messages."""
    return [dict(m) for m in SAMPLE_MESSAGES]


@pytest.fixture
def person_schema():
    """Schema with required fields, an enum and closed properties."""
    return dict(SAMPLE_PERSON_SCHEMA)


@pytest.fixture(autouse=True)
def api_key_env(monkeypatch):
    """Keep tests independent of the developer's environment."""
    monkeypatch.setenv("OPENROUTER_API_KEY", TEST_API_KEY)
    from resilient_llm.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
