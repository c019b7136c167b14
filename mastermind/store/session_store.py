from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Sequence
from datetime import timedelta
from typing import Any, TypeVar

from pydantic import TypeAdapter

from mastermind.errors import InvalidArgument, StoreFailure
from mastermind.settings import CacheSettings
from mastermind.store.backends import KeyValueBackend
from mastermind.store.keys import build_key, normalize_key


logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyLike = str | Sequence[str]


def resolve_ttl(explicit: timedelta | None, default_seconds: int) -> timedelta | None:
    """Effective TTL for one kind (absolute or sliding).

    - explicit > 0: used as-is
    - explicit == 0: that kind is disabled for this call
    - None: the configured default, if it is positive
    """

    if explicit is not None:
        if explicit < timedelta(0):
            raise InvalidArgument("Expiration must be greater than or equal to zero.")
        return explicit if explicit > timedelta(0) else None
    if default_seconds > 0:
        return timedelta(seconds=default_seconds)
    return None


class SessionStore:
    """Typed JSON documents over a KeyValueBackend.

    Keys are either a full key string or an ordered sequence of segments.
    Backend and decoding failures are logged and re-raised as StoreFailure.
    """

    def __init__(self, *, backend: KeyValueBackend, settings: CacheSettings | None = None) -> None:
        self._backend = backend
        self._settings = settings or CacheSettings()

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    def key_for(self, key: KeyLike) -> str:
        if isinstance(key, str):
            if not key or key.isspace():
                raise InvalidArgument("Key must be provided.")
            normalized = normalize_key(key)
        else:
            normalized = build_key(key)
        if not normalized:
            raise InvalidArgument("Key must contain at least one printable character.")
        return normalized

    def _ttls(
        self, absolute_ttl: timedelta | None, sliding_ttl: timedelta | None
    ) -> tuple[timedelta | None, timedelta | None]:
        return (
            resolve_ttl(absolute_ttl, self._settings.default_absolute_expiration_seconds),
            resolve_ttl(sliding_ttl, self._settings.default_sliding_expiration_seconds),
        )

    async def get(self, key: KeyLike, model: type[T]) -> T | None:
        normalized = self.key_for(key)
        try:
            raw = await self._backend.get(normalized)
            if not raw:
                return None
            return TypeAdapter(model).validate_json(raw)
        except Exception as e:
            logger.exception("Store get failed for key %s", normalized)
            raise StoreFailure(f"Store get failed for key {normalized}") from e

    async def set(
        self,
        key: KeyLike,
        value: Any,
        *,
        absolute_ttl: timedelta | None = None,
        sliding_ttl: timedelta | None = None,
    ) -> None:
        normalized = self.key_for(key)
        absolute, sliding = self._ttls(absolute_ttl, sliding_ttl)
        try:
            raw = TypeAdapter(type(value)).dump_json(value).decode("utf-8")
            await self._backend.set(normalized, raw, absolute_ttl=absolute, sliding_ttl=sliding)
        except Exception as e:
            logger.exception("Store set failed for key %s", normalized)
            raise StoreFailure(f"Store set failed for key {normalized}") from e

        if self._settings.enable_diagnostics:
            logger.debug("Store set for key %s (absolute=%s, sliding=%s)", normalized, absolute, sliding)

    async def remove(self, key: KeyLike) -> None:
        normalized = self.key_for(key)
        try:
            await self._backend.remove(normalized)
        except Exception as e:
            logger.exception("Store remove failed for key %s", normalized)
            raise StoreFailure(f"Store remove failed for key {normalized}") from e

    async def get_or_create(
        self,
        key: KeyLike,
        factory: Callable[[], Any] | None,
        model: type[T],
        *,
        absolute_ttl: timedelta | None = None,
        sliding_ttl: timedelta | None = None,
    ) -> T | None:
        """Return the stored value, or build, store and return a new one.

        `factory` may be sync or async and runs at most once per call. A None
        result is returned but never stored. Factory errors propagate and
        nothing is written.
        """

        if factory is None:
            raise InvalidArgument("factory must be provided.")

        normalized = self.key_for(key)
        cached = await self.get(normalized, model)
        if cached is not None:
            return cached

        if self._settings.enable_diagnostics:
            logger.debug("Store miss for key %s", normalized)

        try:
            created = factory()
            if inspect.isawaitable(created):
                created = await created
        except Exception:
            logger.exception("Store factory failed for key %s", normalized)
            raise

        if created is None:
            return None

        await self.set(normalized, created, absolute_ttl=absolute_ttl, sliding_ttl=sliding_ttl)
        return created

    async def close(self) -> None:
        await self._backend.close()
