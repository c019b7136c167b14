"""Guess scoring.

Two numbers come back for every guess:

- `correct_positions`: indices where the guess digit equals the secret digit.
- `correct_numbers`: digits shared between guess and secret regardless of
  position, counting duplicates at most as often as they occur in both.
  Exact matches are shared digits too, so `correct_numbers >= correct_positions`.

Examples against secret [1, 1, 2, 3]:

- guess [1, 2, 4, 2] -> positions 1, numbers 2
- guess [1, 2, 2, 4] -> positions 2, numbers 2 (index 2 matches as well)
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from mastermind.api.models import Feedback


def count_position_matches(secret: Sequence[int], guess: Sequence[int]) -> int:
    return sum(1 for s, g in zip(secret, guess, strict=True) if s == g)


def tally(digits: Iterable[int]) -> Counter[int]:
    """Digit value -> number of occurrences."""
    return Counter(digits)


def count_shared_numbers(secret_tally: Counter[int], guess_tally: Counter[int]) -> int:
    return sum(min(count, guess_tally.get(digit, 0)) for digit, count in secret_tally.items())


def score_guess(secret: Sequence[int], guess: Sequence[int]) -> Feedback:
    if len(secret) != len(guess):
        raise ValueError("secret and guess must have the same length")

    return Feedback(
        correct_positions=count_position_matches(secret, guess),
        correct_numbers=count_shared_numbers(tally(secret), tally(guess)),
    )


def is_solved(feedback: Feedback, *, length: int) -> bool:
    return feedback.correct_positions == length
