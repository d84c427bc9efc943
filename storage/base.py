"""Key-value store client contract shared by the Redis and in-memory backends."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Set


class StoreError(RuntimeError):
    """The backing store is unreachable or rejected a command."""


class KeyValueStore(Protocol):
    """The subset of Redis commands the service relies on.

    Keys, members and values are text. Sorted-set scores are numbers; range
    indexes follow Redis semantics, negative values counting from the end.
    """

    def ping(self) -> bool: ...

    def sadd(self, key: str, *members: str) -> int: ...

    def smembers(self, key: str) -> Set[str]: ...

    def sismember(self, key: str, member: str) -> bool: ...

    def hset(self, key: str, mapping: Mapping[str, str]) -> int: ...

    def hsetnx(self, key: str, field: str, value: str) -> bool: ...

    def hget(self, key: str, field: str) -> Optional[str]: ...

    def hmget(self, key: str, fields: Sequence[str]) -> List[Optional[str]]: ...

    def hgetall(self, key: str) -> Dict[str, str]: ...

    def zadd(self, key: str, member: str, score: float) -> int: ...

    def zrevrange(self, key: str, start: int, stop: int) -> List[str]: ...

    def zrangebyscore(self, key: str, minimum: float, maximum: float) -> List[str]: ...

    def zcard(self, key: str) -> int: ...

    def lpush(self, key: str, value: str) -> int: ...

    def ltrim(self, key: str, start: int, stop: int) -> None: ...

    def lrange(self, key: str, start: int, stop: int) -> List[str]: ...
