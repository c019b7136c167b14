from __future__ import annotations

import asyncio

import httpx
import pytest

from mastermind.errors import InvalidArgument, UpstreamFailure
from mastermind.random_source import (
    LocalRandomSource,
    RandomOrgSource,
    create_secret_source,
    parse_plain_integers,
)
from mastermind.settings import RandomApiSettings


SETTINGS = RandomApiSettings(base_address="https://random.test/", integers_endpoint="integers/", timeout_seconds=1)


def _source(handler) -> tuple[RandomOrgSource, list[httpx.Request]]:  # type: ignore[no-untyped-def]
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(base_url=SETTINGS.base_address, transport=httpx.MockTransport(_record))
    return RandomOrgSource(settings=SETTINGS, client=client), seen


def _assert_valid(numbers: list[int], *, count: int, lo: int, hi: int) -> None:
    assert len(numbers) == count
    assert all(lo <= n <= hi for n in numbers)


@pytest.mark.asyncio
async def test_remote_numbers_are_used_when_valid() -> None:
    source, seen = _source(lambda req: httpx.Response(200, text="3\n0\r\n7\n5\n"))

    numbers = await source.generate(4, 0, 7)

    assert numbers == [3, 0, 7, 5]
    assert len(seen) == 1
    url = seen[0].url
    assert url.path == "/integers/"
    assert dict(url.params) == {
        "num": "4",
        "min": "0",
        "max": "7",
        "col": "1",
        "base": "10",
        "format": "plain",
        "rnd": "new",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="busy"),
        httpx.Response(200, text="1\n2\n3\n"),
        httpx.Response(200, text="1\n2\nthree\n4\n"),
        httpx.Response(200, text="1\n2\n3\n99\n"),
        httpx.Response(200, text=""),
    ],
)
async def test_bad_responses_fall_back_to_local(response: httpx.Response) -> None:
    source, seen = _source(lambda req: response)

    numbers = await source.generate(4, 0, 7)

    _assert_valid(numbers, count=4, lo=0, hi=7)
    assert len(seen) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [
        httpx.ConnectError("refused"),
        httpx.ReadTimeout("slow"),
        RuntimeError("unexpected"),
    ],
)
async def test_transport_errors_fall_back_to_local(exc: Exception) -> None:
    def _raise(request: httpx.Request) -> httpx.Response:
        raise exc

    source, seen = _source(_raise)

    numbers = await source.generate(5, 2, 4)

    _assert_valid(numbers, count=5, lo=2, hi=4)
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_cancelled_remote_call_falls_back_to_local() -> None:
    class _CancellingSource(RandomOrgSource):
        async def fetch(self, count: int, min_value: int, max_value: int) -> list[int]:
            raise asyncio.CancelledError()

    source = _CancellingSource(settings=SETTINGS, client=httpx.AsyncClient())

    numbers = await source.generate(4, 0, 7)
    _assert_valid(numbers, count=4, lo=0, hi=7)


@pytest.mark.asyncio
async def test_trickling_response_hits_the_overall_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("mastermind.random_source.local_random_integers", lambda count, lo, hi: [0] * count)

    async def _trickle():
        for line in (b"3\n", b"3\n", b"3\n", b"3\n"):
            await asyncio.sleep(0.1)
            yield line

    settings = RandomApiSettings(base_address="https://random.test/", timeout_seconds=0.15)
    client = httpx.AsyncClient(
        base_url=settings.base_address,
        transport=httpx.MockTransport(lambda req: httpx.Response(200, content=_trickle())),
    )
    source = RandomOrgSource(settings=settings, client=client)

    # Each chunk beats the timeout on its own; the whole body does not.
    assert await source.generate(4, 0, 3) == [0, 0, 0, 0]
    task = asyncio.current_task()
    assert task is not None and task.cancelling() == 0


@pytest.mark.asyncio
async def test_local_source_and_argument_checks() -> None:
    local = LocalRandomSource()
    _assert_valid(await local.generate(6, 1, 1), count=6, lo=1, hi=1)
    assert await local.generate(0, 0, 7) == []

    with pytest.raises(InvalidArgument):
        await local.generate(-1, 0, 7)
    with pytest.raises(InvalidArgument):
        await local.generate(4, 7, 0)


def test_parse_plain_integers() -> None:
    assert parse_plain_integers("1\n\n2\n", count=2, min_value=0, max_value=7) == [1, 2]
    with pytest.raises(UpstreamFailure):
        parse_plain_integers("1\n2\n", count=3, min_value=0, max_value=7)


def test_create_secret_source_respects_setting() -> None:
    assert isinstance(create_secret_source(RandomApiSettings(source="local")), LocalRandomSource)
    assert isinstance(create_secret_source(RandomApiSettings()), RandomOrgSource)
