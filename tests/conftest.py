"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src and the project root (for tests.fakes) to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from skybot.core.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Keep environment-driven settings from leaking between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with small, fast limits and default languages."""
    return Settings(
        service_url="https://pds.test",
        langs="en,fr",
        rate_limit=100,
        rate_limit_interval=1.0,
    )
