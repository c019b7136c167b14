from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import NoReturn
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from mastermind.api.deps import get_game_engine, get_secret_source, get_session_store
from mastermind.api.models import CachePayload, GameResponse, GuessRequest, HealthStatusResponse, ProblemDetail
from mastermind.errors import ErrorKind, MastermindError, capture
from mastermind.game_engine import GameEngine
from mastermind.random_source import SecretSource
from mastermind.store.session_store import SessionStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.invalid_argument: status.HTTP_400_BAD_REQUEST,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.conflict: status.HTTP_409_CONFLICT,
    ErrorKind.store_failure: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.upstream_failure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_TITLE_BY_KIND: dict[ErrorKind, str] = {
    ErrorKind.invalid_argument: "Invalid request",
    ErrorKind.not_found: "Game not found",
    ErrorKind.conflict: "Conflict submitting guess",
    ErrorKind.store_failure: "Storage failure",
    ErrorKind.upstream_failure: "Upstream failure",
}


def _raise_problem(error: MastermindError, *, context: str) -> NoReturn:
    logger.error("%s: %s (%s)", context, error.message, error.kind.value)
    raise HTTPException(
        status_code=_STATUS_BY_KIND[error.kind],
        detail=ProblemDetail(title=_TITLE_BY_KIND[error.kind], detail=error.message).model_dump(),
    ) from error


def _seconds_to_ttl(seconds: int | None) -> timedelta | None:
    # None => not provided (store default applies); 0 => disabled for this call.
    if seconds is None:
        return None
    return timedelta(seconds=seconds)


@router.get("/health", response_model=HealthStatusResponse)
async def healthcheck() -> HealthStatusResponse:
    return HealthStatusResponse(status="Healthy", timestamp_utc=datetime.now(tz=UTC))


@router.post("/games", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def create_game_route(
    request: Request,
    response: Response,
    engine: GameEngine = Depends(get_game_engine),
) -> GameResponse:
    result = await capture(engine.create_game())
    if result.error is not None:
        _raise_problem(result.error, context="Creating game failed")

    state = result.unwrap()
    response.headers["Location"] = str(request.url_for("get_game", game_id=str(state.id)))
    return GameResponse.from_state(state)


@router.post("/games/{game_id}/guesses", response_model=GameResponse)
async def submit_guess_route(
    game_id: UUID,
    payload: GuessRequest,
    engine: GameEngine = Depends(get_game_engine),
) -> GameResponse:
    submitted = await capture(engine.submit_guess(game_id, payload.guess))
    if submitted.error is not None:
        _raise_problem(submitted.error, context=f"Submitting guess for game {game_id} failed")

    fetched = await capture(engine.get_game(game_id))
    if fetched.error is not None:
        _raise_problem(fetched.error, context=f"Reloading game {game_id} failed")
    return GameResponse.from_state(fetched.unwrap())


@router.get("/games/{game_id}", response_model=GameResponse, name="get_game")
async def get_game_route(game_id: UUID, engine: GameEngine = Depends(get_game_engine)) -> GameResponse:
    result = await capture(engine.get_game(game_id))
    if result.error is not None:
        _raise_problem(result.error, context=f"Loading game {game_id} failed")
    return GameResponse.from_state(result.unwrap())


# ---- Diagnostics: exercise the random source and the store directly ----


@router.get("/test/random-secret", response_model=list[int])
async def random_secret_route(
    count: int = Query(4, ge=0, le=100),
    min_value: int = Query(0, alias="min"),
    max_value: int = Query(7, alias="max"),
    source: SecretSource = Depends(get_secret_source),
) -> list[int]:
    result = await capture(source.generate(count, min_value, max_value))
    if result.error is not None:
        _raise_problem(result.error, context="Random secret failed")
    return result.unwrap()


@router.get("/test/cache/get-or-create/{key}", response_model=CachePayload)
async def cache_get_or_create_route(
    key: str,
    absolute_expiration_seconds: int | None = Query(None, ge=0),
    sliding_expiration_seconds: int | None = Query(None, ge=0),
    store: SessionStore = Depends(get_session_store),
) -> CachePayload:
    def _factory() -> CachePayload:
        return CachePayload(when_utc=datetime.now(tz=UTC), note="created by factory")

    result = await capture(
        store.get_or_create(
            key,
            _factory,
            CachePayload,
            absolute_ttl=_seconds_to_ttl(absolute_expiration_seconds),
            sliding_ttl=_seconds_to_ttl(sliding_expiration_seconds),
        )
    )
    if result.error is not None:
        _raise_problem(result.error, context=f"Cache get-or-create failed for {key!r}")
    return result.unwrap()  # type: ignore[return-value]


@router.post("/test/cache/set/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def cache_set_route(
    key: str,
    payload: CachePayload,
    absolute_expiration_seconds: int | None = Query(None, ge=0),
    sliding_expiration_seconds: int | None = Query(None, ge=0),
    store: SessionStore = Depends(get_session_store),
) -> Response:
    result = await capture(
        store.set(
            key,
            payload,
            absolute_ttl=_seconds_to_ttl(absolute_expiration_seconds),
            sliding_ttl=_seconds_to_ttl(sliding_expiration_seconds),
        )
    )
    if result.error is not None:
        _raise_problem(result.error, context=f"Cache set failed for {key!r}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/test/cache/get/{key}", response_model=CachePayload)
async def cache_get_route(key: str, store: SessionStore = Depends(get_session_store)) -> CachePayload:
    result = await capture(store.get(key, CachePayload))
    if result.error is not None:
        _raise_problem(result.error, context=f"Cache get failed for {key!r}")
    value = result.unwrap()
    if value is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Key not found")
    return value


@router.delete("/test/cache/remove/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def cache_remove_route(key: str, store: SessionStore = Depends(get_session_store)) -> Response:
    result = await capture(store.remove(key))
    if result.error is not None:
        _raise_problem(result.error, context=f"Cache remove failed for {key!r}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
