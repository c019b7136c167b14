from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from mastermind.api.models import GameState
from mastermind.errors import Conflict, DigitOutOfRange, InvalidArgument
from mastermind.fsm import is_terminal


class GuessValidator(ABC):
    """A small, composable check run against an incoming guess."""

    @abstractmethod
    def validate(self, *, state: GameState, guess: Sequence[int]) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class InProgressValidator(GuessValidator):
    """Deny guesses once the game has been won or lost."""

    def validate(self, *, state: GameState, guess: Sequence[int]) -> None:
        if is_terminal(state.status):
            raise Conflict(f"Game {state.id} is already completed with status {state.status.value}.")


@dataclass(frozen=True, slots=True)
class GuessLengthValidator(GuessValidator):
    def validate(self, *, state: GameState, guess: Sequence[int]) -> None:
        required = len(state.secret_combination)
        if len(guess) != required:
            raise InvalidArgument(f"Guess must contain exactly {required} digits.")


@dataclass(frozen=True, slots=True)
class DigitRangeValidator(GuessValidator):
    digit_min: int
    digit_max: int

    def validate(self, *, state: GameState, guess: Sequence[int]) -> None:
        for digit in guess:
            if digit < self.digit_min or digit > self.digit_max:
                raise DigitOutOfRange(digit, digit_min=self.digit_min, digit_max=self.digit_max)


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[GuessValidator, ...]

    def validate(self, *, state: GameState, guess: Sequence[int]) -> None:
        for v in self.validators:
            v.validate(state=state, guess=guess)


def default_guess_pipeline(*, digit_min: int, digit_max: int) -> ValidatorPipeline:
    # Order matters: a finished game is a conflict even if the guess is also malformed.
    return ValidatorPipeline(
        validators=(
            InProgressValidator(),
            GuessLengthValidator(),
            DigitRangeValidator(digit_min=digit_min, digit_max=digit_max),
        )
    )
