from __future__ import annotations

import pytest

from mastermind.random_source import LocalRandomSource
from mastermind.settings import RandomApiSettings, Settings
from mastermind.singleton import get_engine, init_engine, reset_engine_for_tests, shutdown_engine
from mastermind.store.backends import InMemoryBackend


@pytest.fixture(autouse=True)
def _fresh_engine():
    reset_engine_for_tests()
    yield
    reset_engine_for_tests()


def test_get_engine_requires_init() -> None:
    with pytest.raises(RuntimeError):
        get_engine()


def test_init_engine_is_idempotent() -> None:
    engine = init_engine(settings=Settings(random_api=RandomApiSettings(source="local")))

    assert init_engine() is engine
    assert get_engine() is engine
    assert isinstance(engine.secret_source, LocalRandomSource)
    assert isinstance(engine.store.backend, InMemoryBackend)


@pytest.mark.asyncio
async def test_shutdown_forgets_engine() -> None:
    init_engine(settings=Settings(random_api=RandomApiSettings(source="local")))
    await shutdown_engine()

    with pytest.raises(RuntimeError):
        get_engine()
