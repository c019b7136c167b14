from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

from mastermind.errors import InvalidArgument


MAX_KEY_LENGTH = 256

_SEPARATOR_RUN = re.compile(r"[\s:]+")
_WHITESPACE_RUN = re.compile(r"\s+")


def _is_control(ch: str) -> bool:
    return unicodedata.category(ch) == "Cc"


def _strip_control_chars(s: str) -> str:
    return "".join(ch for ch in s if not _is_control(ch))


def _strip_non_space_control_chars(s: str) -> str:
    # Tab, newline, CR, VT, FF and \x1c-\x1f are Cc but also whitespace; they are separators.
    return "".join(ch for ch in s if not _is_control(ch) or ch.isspace())


def normalize_key(key: str) -> str:
    """Canonical form of a store key.

    trim -> lowercase -> drop non-whitespace control chars -> collapse
    whitespace/colon runs into one colon -> cap at MAX_KEY_LENGTH. Applying it
    twice changes nothing.
    """

    s = key.strip().lower()
    # Removing these after the collapse could glue two separators together.
    s = _strip_non_space_control_chars(s)
    s = _SEPARATOR_RUN.sub(":", s)
    return s[:MAX_KEY_LENGTH]


def normalize_segment(segment: str) -> str:
    if not segment or segment.isspace():
        return ""

    s = segment.strip().lower()
    s = _WHITESPACE_RUN.sub(" ", s)
    s = _strip_control_chars(s)
    return s.replace(" ", ":")


def build_key(segments: Iterable[str]) -> str:
    """Compose a key from ordered segments, skipping blank ones."""

    cleaned = [normalize_segment(s) for s in segments if s and not s.isspace()]
    cleaned = [s for s in cleaned if s]
    if not cleaned:
        raise InvalidArgument("At least one non-blank key segment must be provided.")
    return normalize_key(":".join(cleaned))
