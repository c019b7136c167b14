"""Expiring key-value session store.

`SessionStore` owns key normalization, TTL policy and JSON serialization;
`KeyValueBackend` implementations only move strings with expirations.
"""

from mastermind.store.backends import InMemoryBackend, KeyValueBackend, RedisBackend
from mastermind.store.keys import build_key, normalize_key, normalize_segment
from mastermind.store.session_store import SessionStore, resolve_ttl

__all__ = [
    "InMemoryBackend",
    "KeyValueBackend",
    "RedisBackend",
    "SessionStore",
    "build_key",
    "normalize_key",
    "normalize_segment",
    "resolve_ttl",
]
