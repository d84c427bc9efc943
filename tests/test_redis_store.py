from __future__ import annotations

from typing import Any, Dict, List, Tuple

import pytest
import redis

from storage.base import StoreError
from storage.redis_store import RedisKeyValueStore


class RecordingClient:
    """Captures the redis-py calls made by the store."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def __getattr__(self, name: str):
        def command(*args: Any, **kwargs: Any) -> Any:
            self.calls.append((name, args, kwargs))
            return {"zadd": 1, "zrevrange": ["x"], "hgetall": {"a": "b"}}.get(name, 0)

        return command


class FailingClient:
    def zadd(self, *args: Any, **kwargs: Any) -> int:
        raise redis.ConnectionError("Connection refused")


def test_commands_map_to_redis_py() -> None:
    client = RecordingClient()
    store = RedisKeyValueStore(client)  # type: ignore[arg-type]

    assert store.zadd("osp:sensor:1:ticks", "payload", 100) == 1
    assert store.zrevrange("osp:sensor:1:ticks", 0, -1) == ["x"]
    assert store.hgetall("h") == {"a": "b"}
    store.hset("h", {"label": "x"})

    assert client.calls[0] == ("zadd", ("osp:sensor:1:ticks", {"payload": 100}), {})
    assert client.calls[1] == ("zrevrange", ("osp:sensor:1:ticks", 0, -1), {})
    assert client.calls[3] == ("hset", ("h",), {"mapping": {"label": "x"}})


def test_redis_errors_become_store_errors() -> None:
    store = RedisKeyValueStore(FailingClient())  # type: ignore[arg-type]

    with pytest.raises(StoreError) as excinfo:
        store.zadd("key", "member", 1)

    assert "ZADD" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, redis.ConnectionError)
