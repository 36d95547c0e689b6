"""
Shared pytest fixtures and configuration.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from modeswitch.api.app import create_app
from modeswitch.config import Config

MINUTE = 60_000
T0 = 1_760_000_000_000          # fixed epoch ms used as "now" across tests


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def app(tmp_path):
    """Create a fresh app instance (own audit db) per test."""
    return create_app(Config(data_dir=tmp_path))


@pytest_asyncio.fixture()
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
