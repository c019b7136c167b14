from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal


StoreBackendName = Literal["memory", "redis"]
RandomSourceName = Literal["remote", "local"]


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_optional_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return _env_int(name, 0)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().casefold() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class GamePlaySettings:
    default_attempt_limit: int = 10
    digit_min: int = 0
    digit_max: int = 7
    secret_combination_length: int = 4

    # None => fall back to the store's configured defaults.
    sliding_expiration_seconds: int | None = None
    absolute_expiration_seconds: int | None = None

    def __post_init__(self) -> None:
        if self.default_attempt_limit <= 0:
            raise ValueError("default_attempt_limit must be greater than zero")
        if self.secret_combination_length < 4:
            raise ValueError("secret_combination_length must be at least 4")
        if self.digit_min > self.digit_max:
            raise ValueError("digit_min must not exceed digit_max")
        for name in ("sliding_expiration_seconds", "absolute_expiration_seconds"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive when set")
        if (
            self.sliding_expiration_seconds is not None
            and self.absolute_expiration_seconds is not None
            and self.sliding_expiration_seconds > self.absolute_expiration_seconds
        ):
            raise ValueError("sliding_expiration_seconds must not exceed absolute_expiration_seconds")


@dataclass(frozen=True, slots=True)
class CacheSettings:
    enable_diagnostics: bool = False
    default_absolute_expiration_seconds: int = 0
    default_sliding_expiration_seconds: int = 1800

    def __post_init__(self) -> None:
        if self.default_absolute_expiration_seconds < 0 or self.default_sliding_expiration_seconds < 0:
            raise ValueError("cache default expirations must be >= 0")


@dataclass(frozen=True, slots=True)
class RandomApiSettings:
    base_address: str = "https://www.random.org/"
    integers_endpoint: str = "integers/"
    timeout_seconds: float = 5.0
    source: RandomSourceName = "remote"

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        if self.source not in ("remote", "local"):
            raise ValueError(f"Unknown random source: {self.source}")


@dataclass(frozen=True, slots=True)
class StoreSettings:
    backend: StoreBackendName = "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "mastermind:"

    def __post_init__(self) -> None:
        if self.backend not in ("memory", "redis"):
            raise ValueError(f"Unknown store backend: {self.backend}")


@dataclass(frozen=True, slots=True)
class Settings:
    gameplay: GamePlaySettings = field(default_factory=GamePlaySettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    random_api: RandomApiSettings = field(default_factory=RandomApiSettings)
    store: StoreSettings = field(default_factory=StoreSettings)


def gameplay_settings_from_env() -> GamePlaySettings:
    return GamePlaySettings(
        default_attempt_limit=_env_int("MASTERMIND_ATTEMPT_LIMIT", 10),
        digit_min=_env_int("MASTERMIND_DIGIT_MIN", 0),
        digit_max=_env_int("MASTERMIND_DIGIT_MAX", 7),
        secret_combination_length=_env_int("MASTERMIND_SECRET_LENGTH", 4),
        sliding_expiration_seconds=_env_optional_int("MASTERMIND_SLIDING_EXPIRATION_SECONDS"),
        absolute_expiration_seconds=_env_optional_int("MASTERMIND_ABSOLUTE_EXPIRATION_SECONDS"),
    )


def cache_settings_from_env() -> CacheSettings:
    return CacheSettings(
        enable_diagnostics=_env_bool("MASTERMIND_CACHE_DIAGNOSTICS", False),
        default_absolute_expiration_seconds=_env_int("MASTERMIND_CACHE_DEFAULT_ABSOLUTE_SECONDS", 0),
        default_sliding_expiration_seconds=_env_int("MASTERMIND_CACHE_DEFAULT_SLIDING_SECONDS", 1800),
    )


def random_api_settings_from_env() -> RandomApiSettings:
    raw_timeout = os.environ.get("MASTERMIND_RANDOM_TIMEOUT_SECONDS", "5")
    try:
        timeout = float(raw_timeout)
    except ValueError as e:
        raise ValueError(f"MASTERMIND_RANDOM_TIMEOUT_SECONDS must be a number, got {raw_timeout!r}") from e

    return RandomApiSettings(
        base_address=os.environ.get("MASTERMIND_RANDOM_BASE_ADDRESS", "https://www.random.org/"),
        integers_endpoint=os.environ.get("MASTERMIND_RANDOM_INTEGERS_ENDPOINT", "integers/"),
        timeout_seconds=timeout,
        source=os.environ.get("MASTERMIND_RANDOM_SOURCE", "remote").strip().casefold(),  # type: ignore[arg-type]
    )


def store_settings_from_env() -> StoreSettings:
    return StoreSettings(
        backend=os.environ.get("MASTERMIND_STORE_BACKEND", "memory").strip().casefold(),  # type: ignore[arg-type]
        redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
        redis_key_prefix=os.environ.get("MASTERMIND_REDIS_KEY_PREFIX", "mastermind:"),
    )


def settings_from_env() -> Settings:
    return Settings(
        gameplay=gameplay_settings_from_env(),
        cache=cache_settings_from_env(),
        random_api=random_api_settings_from_env(),
        store=store_settings_from_env(),
    )
