from __future__ import annotations

import logging

from mastermind.game_engine import GameEngine
from mastermind.infra.redis_client import create_redis
from mastermind.random_source import create_secret_source
from mastermind.settings import Settings, settings_from_env
from mastermind.store.backends import InMemoryBackend, KeyValueBackend, RedisBackend
from mastermind.store.session_store import SessionStore


logger = logging.getLogger(__name__)

_ENGINE: GameEngine | None = None


def build_backend(settings: Settings) -> KeyValueBackend:
    if settings.store.backend == "redis":
        return RedisBackend(client=create_redis(settings.store.redis_url), key_prefix=settings.store.redis_key_prefix)
    return InMemoryBackend()


def build_engine(settings: Settings) -> GameEngine:
    store = SessionStore(backend=build_backend(settings), settings=settings.cache)
    return GameEngine(
        store=store,
        secret_source=create_secret_source(settings.random_api),
        settings=settings.gameplay,
    )


def init_engine(*, settings: Settings | None = None) -> GameEngine:
    """Build the process-wide engine once.

    Safe to call multiple times; subsequent calls return the existing instance.
    """

    global _ENGINE
    if _ENGINE is None:
        settings = settings or settings_from_env()
        _ENGINE = build_engine(settings)
        logger.info(
            "Engine ready (store=%s, random=%s)",
            settings.store.backend,
            settings.random_api.source,
        )
    return _ENGINE


async def shutdown_engine() -> None:
    global _ENGINE
    if _ENGINE is not None:
        engine, _ENGINE = _ENGINE, None
        await engine.aclose()


def reset_engine_for_tests() -> None:
    """Drop the cached engine without closing it (tests own their engines)."""

    global _ENGINE
    _ENGINE = None


def get_engine() -> GameEngine:
    if _ENGINE is None:
        raise RuntimeError("Engine not initialized. Call init_engine() at startup.")
    return _ENGINE
