from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _now() -> datetime:
    return datetime.now(tz=UTC)


class GameStatus(StrEnum):
    in_progress = "InProgress"
    won = "Won"
    lost = "Lost"


class Feedback(BaseModel):
    model_config = ConfigDict(frozen=True)

    correct_positions: int = Field(0, ge=0)
    correct_numbers: int = Field(0, ge=0)

    @model_validator(mode="after")
    def _numbers_include_positions(self) -> "Feedback":
        # Every exact match is also a shared digit.
        if self.correct_numbers < self.correct_positions:
            raise ValueError("correct_numbers must be >= correct_positions")
        return self


class GuessEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    attempt_number: int = Field(..., ge=1)
    guess: tuple[int, ...]
    feedback: Feedback
    timestamp: datetime


class GameState(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    secret_combination: tuple[int, ...]
    attempt_limit: int = Field(..., gt=0)
    attempts_used: int = Field(0, ge=0)
    status: GameStatus = GameStatus.in_progress

    created_at: datetime = Field(default_factory=_now)
    last_touched_at: datetime = Field(default_factory=_now)
    # Set once, on the transition to Won/Lost.
    completed_at: datetime | None = None

    guess_history: list[GuessEntry] = Field(default_factory=list)

    @property
    def attempts_remaining(self) -> int:
        return self.attempt_limit - self.attempts_used


# ---- HTTP request/response shapes ----


class GuessRequest(BaseModel):
    guess: list[int] = Field(..., min_length=4)


class GuessDTO(BaseModel):
    attempt: int
    guess: list[int]
    correct_numbers: int
    correct_positions: int
    at_utc: datetime

    @classmethod
    def from_entry(cls, entry: GuessEntry) -> "GuessDTO":
        return cls(
            attempt=entry.attempt_number,
            guess=list(entry.guess),
            correct_numbers=entry.feedback.correct_numbers,
            correct_positions=entry.feedback.correct_positions,
            at_utc=entry.timestamp,
        )


class GameResponse(BaseModel):
    game_id: UUID
    status: GameStatus
    attempts_remaining: int
    history: list[GuessDTO] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: GameState) -> "GameResponse":
        return cls(
            game_id=state.id,
            status=state.status,
            attempts_remaining=state.attempts_remaining,
            history=[GuessDTO.from_entry(e) for e in state.guess_history],
        )


class HealthStatusResponse(BaseModel):
    status: str
    timestamp_utc: datetime


class CachePayload(BaseModel):
    """Free-form document used by the diagnostic cache routes."""

    when_utc: datetime
    note: str | None = None


class ProblemDetail(BaseModel):
    """Body of the `detail` field on error responses."""

    title: str
    detail: str
