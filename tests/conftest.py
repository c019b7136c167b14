from __future__ import annotations

from collections.abc import Generator, Sequence

import pytest

from mastermind.game_engine import GameEngine
from mastermind.random_source import SecretSource
from mastermind.settings import CacheSettings, GamePlaySettings
from mastermind.store.backends import InMemoryBackend
from mastermind.store.session_store import SessionStore


class FixedSecretSource(SecretSource):
    """Always hands out the same secret; records every request."""

    def __init__(self, secret: Sequence[int]) -> None:
        self.secret = list(secret)
        self.calls: list[tuple[int, int, int]] = []

    async def generate(self, count: int, min_value: int, max_value: int) -> list[int]:
        self.calls.append((count, min_value, max_value))
        return self.secret[:count]


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _hermetic_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the app's own engine local-only so no test touches the network."""

    monkeypatch.setenv("MASTERMIND_RANDOM_SOURCE", "local")
    monkeypatch.setenv("MASTERMIND_STORE_BACKEND", "memory")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def backend(clock: FakeClock) -> InMemoryBackend:
    return InMemoryBackend(clock=clock)


@pytest.fixture()
def store(backend: InMemoryBackend) -> SessionStore:
    return SessionStore(backend=backend, settings=CacheSettings())


@pytest.fixture()
def secret_source() -> FixedSecretSource:
    return FixedSecretSource([1, 1, 2, 3])


@pytest.fixture()
def gameplay_settings() -> GamePlaySettings:
    return GamePlaySettings(default_attempt_limit=3)


@pytest.fixture()
def engine(store: SessionStore, secret_source: FixedSecretSource, gameplay_settings: GamePlaySettings) -> GameEngine:
    return GameEngine(store=store, secret_source=secret_source, settings=gameplay_settings)


@pytest.fixture()
def client(engine: GameEngine) -> Generator:
    """FastAPI TestClient wired to the test engine."""

    from fastapi.testclient import TestClient

    from mastermind.api.deps import get_game_engine
    from mastermind.main import app
    from mastermind.singleton import reset_engine_for_tests

    app.dependency_overrides[get_game_engine] = lambda: engine
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
        reset_engine_for_tests()
