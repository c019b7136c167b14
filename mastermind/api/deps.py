from __future__ import annotations

from fastapi import Depends

from mastermind.game_engine import GameEngine
from mastermind.random_source import SecretSource
from mastermind.singleton import get_engine
from mastermind.store.session_store import SessionStore


def get_game_engine() -> GameEngine:
    return get_engine()


# Store and secret source hang off the engine so one override swaps all three.
def get_session_store(engine: GameEngine = Depends(get_game_engine)) -> SessionStore:
    return engine.store


def get_secret_source(engine: GameEngine = Depends(get_game_engine)) -> SecretSource:
    return engine.secret_source
