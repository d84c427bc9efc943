from __future__ import annotations

from threading import Lock
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from storage.base import StoreError


def _index_window(length: int, start: int, stop: int) -> Tuple[int, int]:
    """Translate inclusive Redis-style indexes into a Python slice."""
    if start < 0:
        start = max(length + start, 0)
    if stop < 0:
        stop = length + stop
    if start >= length or start > stop:
        return 0, 0
    return start, min(stop, length - 1) + 1


class InMemoryKeyValueStore:
    """Thread-safe in-process stand-in for the Redis store.

    Mirrors the Redis semantics the service depends on, including
    WRONGTYPE failures when a key is reused with a different data type.
    """

    def __init__(self) -> None:
        self._sets: Dict[str, Set[str]] = {}
        self._hashes: Dict[str, Dict[str, str]] = {}
        self._zsets: Dict[str, Dict[str, float]] = {}
        self._lists: Dict[str, List[str]] = {}
        self._lock = Lock()

    def ping(self) -> bool:
        return True

    def sadd(self, key: str, *members: str) -> int:
        with self._lock:
            self._check_type(key, self._sets)
            bucket = self._sets.setdefault(key, set())
            added = 0
            for member in members:
                if member not in bucket:
                    bucket.add(member)
                    added += 1
            return added

    def smembers(self, key: str) -> Set[str]:
        with self._lock:
            self._check_type(key, self._sets)
            return set(self._sets.get(key, ()))

    def sismember(self, key: str, member: str) -> bool:
        with self._lock:
            self._check_type(key, self._sets)
            return member in self._sets.get(key, ())

    def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        with self._lock:
            self._check_type(key, self._hashes)
            fields = self._hashes.setdefault(key, {})
            created = sum(1 for name in mapping if name not in fields)
            fields.update({name: str(value) for name, value in mapping.items()})
            return created

    def hsetnx(self, key: str, field: str, value: str) -> bool:
        with self._lock:
            self._check_type(key, self._hashes)
            fields = self._hashes.setdefault(key, {})
            if field in fields:
                return False
            fields[field] = str(value)
            return True

    def hget(self, key: str, field: str) -> Optional[str]:
        with self._lock:
            self._check_type(key, self._hashes)
            return self._hashes.get(key, {}).get(field)

    def hmget(self, key: str, fields: Sequence[str]) -> List[Optional[str]]:
        with self._lock:
            self._check_type(key, self._hashes)
            stored = self._hashes.get(key, {})
            return [stored.get(name) for name in fields]

    def hgetall(self, key: str) -> Dict[str, str]:
        with self._lock:
            self._check_type(key, self._hashes)
            return dict(self._hashes.get(key, {}))

    def zadd(self, key: str, member: str, score: float) -> int:
        with self._lock:
            self._check_type(key, self._zsets)
            members = self._zsets.setdefault(key, {})
            added = 0 if member in members else 1
            members[member] = float(score)
            return added

    def zrevrange(self, key: str, start: int, stop: int) -> List[str]:
        with self._lock:
            ordered = self._ordered_members(key)
            ordered.reverse()
            begin, end = _index_window(len(ordered), start, stop)
            return [member for member, _score in ordered[begin:end]]

    def zrangebyscore(self, key: str, minimum: float, maximum: float) -> List[str]:
        with self._lock:
            return [
                member
                for member, score in self._ordered_members(key)
                if minimum <= score <= maximum
            ]

    def zcard(self, key: str) -> int:
        with self._lock:
            self._check_type(key, self._zsets)
            return len(self._zsets.get(key, {}))

    def lpush(self, key: str, value: str) -> int:
        with self._lock:
            self._check_type(key, self._lists)
            items = self._lists.setdefault(key, [])
            items.insert(0, value)
            return len(items)

    def ltrim(self, key: str, start: int, stop: int) -> None:
        with self._lock:
            self._check_type(key, self._lists)
            items = self._lists.get(key)
            if items is None:
                return
            begin, end = _index_window(len(items), start, stop)
            self._lists[key] = items[begin:end]

    def lrange(self, key: str, start: int, stop: int) -> List[str]:
        with self._lock:
            self._check_type(key, self._lists)
            items = self._lists.get(key, [])
            begin, end = _index_window(len(items), start, stop)
            return list(items[begin:end])

    def _ordered_members(self, key: str) -> List[Tuple[str, float]]:
        self._check_type(key, self._zsets)
        members = self._zsets.get(key, {})
        return sorted(members.items(), key=lambda item: (item[1], item[0]))

    def _check_type(self, key: str, expected: Dict) -> None:
        for container in (self._sets, self._hashes, self._zsets, self._lists):
            if container is not expected and key in container:
                raise StoreError(
                    f"WRONGTYPE Operation against key {key!r} holding the wrong kind of value"
                )
