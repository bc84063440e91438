"""Usage event store.

Usage events are telemetry: a failed write is logged and dropped, and failed
reads return an empty result. At most `cap` events are kept.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from models.learning import UsageEvent
from utils.json_store import JsonObjectStore, oldest_ids, run_blocking

logger = logging.getLogger(__name__)

USAGE_CAP = 2000
USAGE_FILE = "usage-events.json"


class UsageStore(ABC):
    @abstractmethod
    async def save(self, event: UsageEvent) -> None: ...

    @abstractmethod
    async def get_all(self) -> list[UsageEvent]: ...

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def clear(self) -> None: ...

    async def get_by_session(self, session_id: str) -> list[UsageEvent]:
        return [e for e in await self.get_all() if e.session_id == session_id]


class InMemoryUsageStore(UsageStore):
    def __init__(self, cap: int = USAGE_CAP):
        self.cap = cap
        self._events: dict[str, UsageEvent] = {}

    async def save(self, event: UsageEvent) -> None:
        self._events[event.id] = event
        timestamps = {eid: e.timestamp for eid, e in self._events.items()}
        for old_id in oldest_ids(timestamps, self.cap):
            del self._events[old_id]

    async def get_all(self) -> list[UsageEvent]:
        return list(self._events.values())

    async def count(self) -> int:
        return len(self._events)

    async def clear(self) -> None:
        self._events.clear()


class JsonUsageStore(UsageStore):
    def __init__(self, data_dir: Path, cap: int = USAGE_CAP):
        self.cap = cap
        self._store = JsonObjectStore(data_dir / USAGE_FILE)

    async def save(self, event: UsageEvent) -> None:
        try:
            await run_blocking(self._store.put, event.id, event.model_dump(mode="json"), self.cap)
        except (OSError, ValueError) as exc:
            logger.error("Failed to save usage event %s: %s", event.id, exc)

    async def get_all(self) -> list[UsageEvent]:
        try:
            rows = await run_blocking(self._store.all)
            return [UsageEvent.model_validate(row) for row in rows]
        except (OSError, ValueError) as exc:
            logger.error("Failed to get usage events: %s", exc)
            return []

    async def count(self) -> int:
        try:
            return await run_blocking(self._store.count)
        except (OSError, ValueError) as exc:
            logger.error("Failed to count usage events: %s", exc)
            return 0

    async def clear(self) -> None:
        try:
            await run_blocking(self._store.clear)
        except (OSError, ValueError) as exc:
            logger.error("Failed to clear usage events: %s", exc)
