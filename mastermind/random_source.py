from __future__ import annotations

import asyncio
import logging
import random
from abc import ABC, abstractmethod

import httpx

from mastermind.errors import InvalidArgument, UpstreamFailure
from mastermind.settings import RandomApiSettings


logger = logging.getLogger(__name__)

_rng = random.SystemRandom()


def _check_request(count: int, min_value: int, max_value: int) -> None:
    if count < 0:
        raise InvalidArgument("count must be >= 0")
    if min_value > max_value:
        raise InvalidArgument("min_value must not exceed max_value")


def local_random_integers(count: int, min_value: int, max_value: int) -> list[int]:
    """`count` uniform integers in [min_value, max_value], inclusive."""
    return [_rng.randint(min_value, max_value) for _ in range(count)]


def parse_plain_integers(text: str, *, count: int, min_value: int, max_value: int) -> list[int]:
    """Parse a one-integer-per-line body. Blank lines are ignored.

    Raises UpstreamFailure on a wrong line count, a non-integer line or an
    out-of-range value.
    """

    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if len(lines) != count:
        raise UpstreamFailure(f"expected {count} integers, got {len(lines)} lines")

    try:
        numbers = [int(line) for line in lines]
    except ValueError as e:
        raise UpstreamFailure("random service returned a non-integer line") from e

    for n in numbers:
        if n < min_value or n > max_value:
            raise UpstreamFailure(f"random service returned {n}, outside [{min_value}, {max_value}]")
    return numbers


class SecretSource(ABC):
    @abstractmethod
    async def generate(self, count: int, min_value: int, max_value: int) -> list[int]:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class LocalRandomSource(SecretSource):
    async def generate(self, count: int, min_value: int, max_value: int) -> list[int]:
        _check_request(count, min_value, max_value)
        return local_random_integers(count, min_value, max_value)


class RandomOrgSource(SecretSource):
    """Integers from a random.org-style plain-text endpoint.

    One request, no retries, bounded by `timeout_seconds` end to end. Any
    failure (transport error, timeout, non-2xx, bad body, or cancellation of
    the request) is logged and answered from the local generator instead, so
    `generate` always returns `count` integers.
    """

    def __init__(self, *, settings: RandomApiSettings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_address,
            timeout=settings.timeout_seconds,
        )

    def build_params(self, count: int, min_value: int, max_value: int) -> dict[str, str | int]:
        return {
            "num": count,
            "min": min_value,
            "max": max_value,
            "col": 1,
            "base": 10,
            "format": "plain",
            "rnd": "new",
        }

    async def fetch(self, count: int, min_value: int, max_value: int) -> list[int]:
        resp = await self._client.get(
            self._settings.integers_endpoint,
            params=self.build_params(count, min_value, max_value),
        )
        resp.raise_for_status()
        return parse_plain_integers(resp.text, count=count, min_value=min_value, max_value=max_value)

    async def generate(self, count: int, min_value: int, max_value: int) -> list[int]:
        _check_request(count, min_value, max_value)

        try:
            # The client timeout covers each phase separately; this bounds the whole call.
            async with asyncio.timeout(self._settings.timeout_seconds):
                return await self.fetch(count, min_value, max_value)
        except asyncio.CancelledError:
            # The owning task stays marked as cancelling; callers decide whether to stop.
            logger.warning("Request to random service was cancelled. Using local fallback.")
        except Exception:
            logger.exception("Request to random service failed. Using local fallback.")

        return local_random_integers(count, min_value, max_value)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def create_secret_source(settings: RandomApiSettings) -> SecretSource:
    if settings.source == "local":
        return LocalRandomSource()
    return RandomOrgSource(settings=settings)
