"""Shared fixtures for unit tests."""

from unittest.mock import AsyncMock

import pytest

from skybot.core.config import Settings
from skybot.domain.services.bot import Bot
from skybot.infrastructure.richtext.provider import RichText
from tests.fakes import OWN_HANDLE, CountingThrottle, build_api, default_operations


@pytest.fixture
def operations() -> dict[str, AsyncMock]:
    """The fake remote operations, keyed by dotted path."""
    return default_operations()


@pytest.fixture
def throttle() -> CountingThrottle:
    return CountingThrottle()


@pytest.fixture
def detector() -> AsyncMock:
    """Facet detector that finds nothing."""
    fake = AsyncMock()
    fake.detect.side_effect = lambda text: RichText(text=text)
    return fake


@pytest.fixture
def bot(
    settings: Settings,
    operations: dict[str, AsyncMock],
    throttle: CountingThrottle,
    detector: AsyncMock,
) -> Bot:
    """A logged-out bot over the fake operations."""
    return Bot(settings, api=build_api(operations), throttle=throttle, facet_detector=detector)


@pytest.fixture
async def logged_in_bot(bot: Bot, operations: dict[str, AsyncMock], throttle: CountingThrottle) -> Bot:
    """A logged-in bot with call counters reset after login."""
    await bot.login({"identifier": OWN_HANDLE, "password": "pw"})
    for operation in operations.values():
        operation.reset_mock()
    throttle.acquired = 0
    return bot
