"""Unit tests for the in-memory key-value store double."""

from __future__ import annotations

import pytest

from storage.base import StoreError
from storage.memory_store import InMemoryKeyValueStore


def test_sets_report_new_members_only() -> None:
    store = InMemoryKeyValueStore()

    assert store.sadd("s", "a", "b") == 2
    assert store.sadd("s", "a") == 0
    assert store.smembers("s") == {"a", "b"}
    assert store.sismember("s", "b") is True
    assert store.smembers("missing") == set()


def test_hashes_overwrite_and_setnx() -> None:
    store = InMemoryKeyValueStore()

    assert store.hset("h", {"label": "one"}) == 1
    assert store.hset("h", {"label": "two"}) == 0
    assert store.hsetnx("h", "label", "three") is False
    assert store.hsetnx("h", "token", "abc") is True
    assert store.hgetall("h") == {"label": "two", "token": "abc"}
    assert store.hget("h", "missing") is None
    assert store.hmget("h", ["token", "nope"]) == ["abc", None]


def test_sorted_set_ranges_follow_redis_indexes() -> None:
    store = InMemoryKeyValueStore()
    for score, member in enumerate(["a", "b", "c", "d"]):
        store.zadd("z", member, score)

    assert store.zrevrange("z", 0, 0) == ["d"]
    assert store.zrevrange("z", 1, 2) == ["c", "b"]
    assert store.zrevrange("z", 2, -1) == ["b", "a"]
    assert store.zrevrange("z", 0, 99) == ["d", "c", "b", "a"]
    assert store.zrevrange("z", 5, 9) == []
    assert store.zrangebyscore("z", 1, 2) == ["b", "c"]
    assert store.zcard("z") == 4


def test_sorted_set_member_is_unique() -> None:
    store = InMemoryKeyValueStore()

    assert store.zadd("z", "a", 1) == 1
    assert store.zadd("z", "a", 1) == 0
    assert store.zcard("z") == 1


def test_lists_push_to_head_and_trim() -> None:
    store = InMemoryKeyValueStore()
    for value in ["1", "2", "3", "4"]:
        store.lpush("l", value)

    store.ltrim("l", 0, 2)

    assert store.lrange("l", 0, -1) == ["4", "3", "2"]


def test_wrong_type_raises_store_error() -> None:
    store = InMemoryKeyValueStore()
    store.sadd("key", "a")

    with pytest.raises(StoreError):
        store.zadd("key", "a", 1)
