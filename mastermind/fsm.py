from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal, assert_never

from statemachine import State, StateMachine

from mastermind.api.models import Feedback, GameState, GameStatus
from mastermind.errors import Conflict
from mastermind.scoring import is_solved


GameEvent = Literal["solve", "exhaust", "keep_playing"]


def is_terminal(status: GameStatus) -> bool:
    match status:
        case GameStatus.in_progress:
            return False
        case GameStatus.won | GameStatus.lost:
            return True
        case _:
            assert_never(status)


class GameFSM(StateMachine):
    """FSM wrapper around GameState.

    - InProgress -> InProgress (non-winning guess with attempts left)
    - InProgress -> Won (all positions correct)
    - InProgress -> Lost (attempt limit reached)

    Won and Lost are final; any event from them is rejected.
    """

    in_progress = State(GameStatus.in_progress.value, value=GameStatus.in_progress.value, initial=True)
    won = State(GameStatus.won.value, value=GameStatus.won.value, final=True)
    lost = State(GameStatus.lost.value, value=GameStatus.lost.value, final=True)

    keep_playing = in_progress.to.itself()
    solve = in_progress.to(won)
    exhaust = in_progress.to(lost)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value=game.status.value)

    def sync_status_to_model(self) -> None:
        self.game.status = GameStatus(str(self.current_state_value))


def event_for_guess(*, feedback: Feedback, attempts_used: int, attempt_limit: int, length: int) -> GameEvent:
    """Pick the transition for a freshly scored guess. A win beats running out of attempts."""

    if is_solved(feedback, length=length):
        return "solve"
    if attempts_used >= attempt_limit:
        return "exhaust"
    return "keep_playing"


def apply_guess_outcome(*, state: GameState, feedback: Feedback) -> GameStatus:
    """Advance `state.status` after a guess has been recorded.

    Expects `attempts_used` to already include the guess. Sets `completed_at`
    on the transition into a terminal status.
    """

    if is_terminal(state.status):
        raise Conflict(f"Game {state.id} is already completed with status {state.status.value}.")

    fsm = GameFSM(state)
    event = event_for_guess(
        feedback=feedback,
        attempts_used=state.attempts_used,
        attempt_limit=state.attempt_limit,
        length=len(state.secret_combination),
    )
    fsm.send(event)
    fsm.sync_status_to_model()

    if is_terminal(state.status) and state.completed_at is None:
        state.completed_at = datetime.now(tz=UTC)
    return state.status
