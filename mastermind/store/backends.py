from __future__ import annotations

import math
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

import redis.asyncio as aioredis


class KeyValueBackend(ABC):
    """String-in/string-out storage with optional absolute and sliding expiry.

    Keys arrive already normalized. Implementations must be safe for
    concurrent use across distinct keys; writes to one key are last-write-wins.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    async def set(
        self,
        key: str,
        value: str,
        *,
        absolute_ttl: timedelta | None,
        sliding_ttl: timedelta | None,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def remove(self, key: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return None


@dataclass(slots=True)
class _Entry:
    value: str
    absolute_deadline: float | None
    sliding_seconds: float | None
    last_access: float

    def expired(self, now: float) -> bool:
        if self.absolute_deadline is not None and now >= self.absolute_deadline:
            return True
        if self.sliding_seconds is not None and now - self.last_access >= self.sliding_seconds:
            return True
        return False


class InMemoryBackend(KeyValueBackend):
    """In-process expiring map.

    Every read/write happens under one `threading.Lock`, so the backend can be
    shared between the event loop and threadpool-run dependencies. Expired
    entries are dropped when touched and swept on each write.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for e in self._entries.values() if not e.expired(now))

    async def get(self, key: str) -> str | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(now):
                del self._entries[key]
                return None
            entry.last_access = now
            return entry.value

    async def set(
        self,
        key: str,
        value: str,
        *,
        absolute_ttl: timedelta | None,
        sliding_ttl: timedelta | None,
    ) -> None:
        now = self._clock()
        entry = _Entry(
            value=value,
            absolute_deadline=now + absolute_ttl.total_seconds() if absolute_ttl else None,
            sliding_seconds=sliding_ttl.total_seconds() if sliding_ttl else None,
            last_access=now,
        )
        with self._lock:
            self._sweep(now)
            self._entries[key] = entry

    async def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def _sweep(self, now: float) -> None:
        dead = [k for k, e in self._entries.items() if e.expired(now)]
        for k in dead:
            del self._entries[k]


_DATA_FIELD = "data"
_ABSOLUTE_FIELD = "absexp"
_SLIDING_FIELD = "sldexp"
_NOT_SET = -1


def _expiry_ms(*, now: float, absolute_at: float, sliding_seconds: float) -> int | None:
    """Milliseconds until the key should vanish, or None for no expiry.

    `absolute_at` / `sliding_seconds` use -1 for "not set".
    """

    candidates: list[float] = []
    if absolute_at != _NOT_SET:
        candidates.append(absolute_at - now)
    if sliding_seconds != _NOT_SET:
        candidates.append(sliding_seconds)
    if not candidates:
        return None
    return max(0, math.ceil(min(candidates) * 1000))


class RedisBackend(KeyValueBackend):
    """Redis-backed store.

    Each key is a hash: `data` (the document), `absexp` (epoch seconds of the
    absolute deadline or -1) and `sldexp` (sliding window in seconds or -1).
    The Redis key TTL is the smaller of the two and is renewed on every read
    while a sliding window is present.

    The client must be created with `decode_responses=True`.
    """

    def __init__(
        self,
        *,
        client: aioredis.Redis,
        key_prefix: str = "mastermind:",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._r = client
        self._prefix = key_prefix
        self._clock = clock

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> str | None:
        rkey = self._key(key)
        fields = await self._r.hgetall(rkey)
        if not fields:
            return None

        data = fields.get(_DATA_FIELD)
        if data is None:
            return None

        sliding_seconds = float(fields.get(_SLIDING_FIELD, _NOT_SET))
        if sliding_seconds != _NOT_SET:
            absolute_at = float(fields.get(_ABSOLUTE_FIELD, _NOT_SET))
            ttl_ms = _expiry_ms(now=self._clock(), absolute_at=absolute_at, sliding_seconds=sliding_seconds)
            if ttl_ms is not None:
                if ttl_ms <= 0:
                    await self._r.delete(rkey)
                    return None
                await self._r.pexpire(rkey, ttl_ms)

        return data

    async def set(
        self,
        key: str,
        value: str,
        *,
        absolute_ttl: timedelta | None,
        sliding_ttl: timedelta | None,
    ) -> None:
        rkey = self._key(key)
        now = self._clock()
        absolute_at = now + absolute_ttl.total_seconds() if absolute_ttl else _NOT_SET
        sliding_seconds = sliding_ttl.total_seconds() if sliding_ttl else _NOT_SET
        ttl_ms = _expiry_ms(now=now, absolute_at=absolute_at, sliding_seconds=sliding_seconds)

        async with self._r.pipeline(transaction=True) as pipe:
            pipe.delete(rkey)
            pipe.hset(
                rkey,
                mapping={
                    _DATA_FIELD: value,
                    _ABSOLUTE_FIELD: str(absolute_at),
                    _SLIDING_FIELD: str(sliding_seconds),
                },
            )
            if ttl_ms is not None:
                pipe.pexpire(rkey, max(1, ttl_ms))
            await pipe.execute()

    async def remove(self, key: str) -> None:
        await self._r.delete(self._key(key))

    async def close(self) -> None:
        await self._r.aclose()
