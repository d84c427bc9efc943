from __future__ import annotations

from datetime import datetime
from typing import Callable, List

from datastore import keys
from storage.base import KeyValueStore


class OperationalLog:
    """Bounded list of raw transmissions, newest first."""

    def __init__(
        self,
        store: KeyValueStore,
        max_entries: int = 1001,
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    ) -> None:
        self.store = store
        self.max_entries = max_entries
        self.clock = clock

    def record(self, payload: str) -> None:
        entry = f"{self.clock().isoformat()} {payload}"
        self.store.lpush(keys.KEY_LOGS, entry)
        self.store.ltrim(keys.KEY_LOGS, 0, self.max_entries - 1)

    def recent(self) -> List[str]:
        return self.store.lrange(keys.KEY_LOGS, 0, self.max_entries - 1)
