from __future__ import annotations

import os

import redis.asyncio as aioredis


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def create_redis(url: str | None = None) -> aioredis.Redis:
    # decode_responses=True => strings in/out instead of bytes
    return aioredis.Redis.from_url(url or get_redis_url(), decode_responses=True)
