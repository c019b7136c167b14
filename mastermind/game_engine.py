from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from uuid import UUID

from mastermind.api.models import GameState, GameStatus, GuessEntry
from mastermind.errors import NotFound
from mastermind.fsm import apply_guess_outcome, is_terminal
from mastermind.random_source import SecretSource
from mastermind.scoring import score_guess
from mastermind.settings import GamePlaySettings
from mastermind.store.session_store import SessionStore
from mastermind.turn_processing.validators import ValidatorPipeline, default_guess_pipeline


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _game_key(game_id: UUID | str) -> str:
    return str(game_id)


def _raise_if_cancelled() -> None:
    """Stop before a write if the current task has been asked to cancel.

    The secret source swallows cancellation of its HTTP call to fall back
    locally, so this is checked explicitly instead of relying on the next await.
    """

    task = asyncio.current_task()
    if task is not None and task.cancelling():
        raise asyncio.CancelledError()


class GameEngine:
    """Create games, score guesses and persist state.

    Every operation loads the full GameState, mutates it in memory and writes
    the whole document back. Concurrent submits on one game id are not
    serialized: the later write wins.
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        secret_source: SecretSource,
        settings: GamePlaySettings | None = None,
        pipeline: ValidatorPipeline | None = None,
    ) -> None:
        self._store = store
        self._secret_source = secret_source
        self._settings = settings or GamePlaySettings()
        self._pipeline = pipeline or default_guess_pipeline(
            digit_min=self._settings.digit_min,
            digit_max=self._settings.digit_max,
        )

    @property
    def settings(self) -> GamePlaySettings:
        return self._settings

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def secret_source(self) -> SecretSource:
        return self._secret_source

    def _ttls(self) -> tuple[timedelta | None, timedelta | None]:
        s = self._settings
        absolute = timedelta(seconds=s.absolute_expiration_seconds) if s.absolute_expiration_seconds else None
        sliding = timedelta(seconds=s.sliding_expiration_seconds) if s.sliding_expiration_seconds else None
        return absolute, sliding

    async def _persist(self, state: GameState) -> None:
        _raise_if_cancelled()
        absolute, sliding = self._ttls()
        await self._store.set(_game_key(state.id), state, absolute_ttl=absolute, sliding_ttl=sliding)

    async def _require_game(self, game_id: UUID | str) -> GameState:
        state = await self._store.get(_game_key(game_id), GameState)
        if state is None:
            raise NotFound(f"Game {game_id} was not found.")
        return state

    async def create_game(self) -> GameState:
        s = self._settings
        secret = await self._secret_source.generate(s.secret_combination_length, s.digit_min, s.digit_max)

        now = _now()
        state = GameState(
            secret_combination=tuple(secret),
            attempt_limit=s.default_attempt_limit,
            attempts_used=0,
            status=GameStatus.in_progress,
            created_at=now,
            last_touched_at=now,
            completed_at=None,
        )
        await self._persist(state)

        logger.info("Created game %s (length=%d, attempts=%d)", state.id, len(secret), state.attempt_limit)
        return state

    async def submit_guess(self, game_id: UUID | str, guess: Sequence[int]) -> GuessEntry:
        state = await self._require_game(game_id)
        self._pipeline.validate(state=state, guess=guess)

        feedback = score_guess(state.secret_combination, guess)

        # Attempt number matches attempts_used for this entry.
        state.attempts_used += 1
        entry = GuessEntry(
            attempt_number=state.attempts_used,
            guess=tuple(guess),
            feedback=feedback,
            timestamp=_now(),
        )
        state.guess_history.append(entry)

        status = apply_guess_outcome(state=state, feedback=feedback)
        state.last_touched_at = _now()

        await self._persist(state)

        if is_terminal(status):
            logger.info("Game %s finished: %s after %d attempts", state.id, status.value, state.attempts_used)
        return entry

    async def get_game(self, game_id: UUID | str) -> GameState:
        return await self._require_game(game_id)

    async def aclose(self) -> None:
        await self._secret_source.aclose()
        await self._store.close()
