from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Set

import redis

from settings import get_settings
from storage.base import KeyValueStore, StoreError
from storage.memory_store import InMemoryKeyValueStore

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(command: str) -> Iterator[None]:
    try:
        yield
    except redis.RedisError as exc:
        raise StoreError(f"Redis command {command} failed: {exc}") from exc


class RedisKeyValueStore:
    """KeyValueStore backed by a redis-py client.

    The client must be created with ``decode_responses=True``; every value
    crossing this boundary is text.
    """

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: Optional[float] = None) -> "RedisKeyValueStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def ping(self) -> bool:
        with _translate_errors("PING"):
            return bool(self.client.ping())

    def sadd(self, key: str, *members: str) -> int:
        with _translate_errors("SADD"):
            return int(self.client.sadd(key, *members))

    def smembers(self, key: str) -> Set[str]:
        with _translate_errors("SMEMBERS"):
            return set(self.client.smembers(key))

    def sismember(self, key: str, member: str) -> bool:
        with _translate_errors("SISMEMBER"):
            return bool(self.client.sismember(key, member))

    def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        with _translate_errors("HSET"):
            return int(self.client.hset(key, mapping=dict(mapping)))

    def hsetnx(self, key: str, field: str, value: str) -> bool:
        with _translate_errors("HSETNX"):
            return bool(self.client.hsetnx(key, field, value))

    def hget(self, key: str, field: str) -> Optional[str]:
        with _translate_errors("HGET"):
            return self.client.hget(key, field)

    def hmget(self, key: str, fields: Sequence[str]) -> List[Optional[str]]:
        with _translate_errors("HMGET"):
            return list(self.client.hmget(key, list(fields)))

    def hgetall(self, key: str) -> Dict[str, str]:
        with _translate_errors("HGETALL"):
            return dict(self.client.hgetall(key))

    def zadd(self, key: str, member: str, score: float) -> int:
        with _translate_errors("ZADD"):
            return int(self.client.zadd(key, {member: score}))

    def zrevrange(self, key: str, start: int, stop: int) -> List[str]:
        with _translate_errors("ZREVRANGE"):
            return list(self.client.zrevrange(key, start, stop))

    def zrangebyscore(self, key: str, minimum: float, maximum: float) -> List[str]:
        with _translate_errors("ZRANGEBYSCORE"):
            return list(self.client.zrangebyscore(key, minimum, maximum))

    def zcard(self, key: str) -> int:
        with _translate_errors("ZCARD"):
            return int(self.client.zcard(key))

    def lpush(self, key: str, value: str) -> int:
        with _translate_errors("LPUSH"):
            return int(self.client.lpush(key, value))

    def ltrim(self, key: str, start: int, stop: int) -> None:
        with _translate_errors("LTRIM"):
            self.client.ltrim(key, start, stop)

    def lrange(self, key: str, start: int, stop: int) -> List[str]:
        with _translate_errors("LRANGE"):
            return list(self.client.lrange(key, start, stop))

    def close(self) -> None:
        self.client.close()


@lru_cache
def build_default_store(backend: Optional[str] = None) -> KeyValueStore:
    """Factory returning the process-wide store client for the configured backend."""
    settings = get_settings()
    selected = settings.store_backend if backend is None else backend
    if selected == "memory":
        logger.warning("Using the in-memory store; data is lost on restart")
        return InMemoryKeyValueStore()
    logger.info("Connecting to Redis at %s", settings.redis_url)
    return RedisKeyValueStore.from_url(
        settings.redis_url, socket_timeout=settings.redis_socket_timeout
    )
