from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from agrihero.apps.api.main import create_app
from agrihero.core.config import Settings
from agrihero.persistence.memory import MemoryRepository


@pytest.fixture
def settings() -> Settings:
    # Low hash cost keeps password-heavy tests fast; seeding is opt-in per test.
    return Settings(
        storage_backend="memory",
        seed_demo_data=False,
        password_hash_iterations=1000,
        _env_file=None,
    )


@pytest.fixture
def repository() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def app(settings: Settings, repository: MemoryRepository):
    # ASGITransport skips lifespan, so the app gets a ready-made store.
    return create_app(settings=settings, repository=repository)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
