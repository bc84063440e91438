"""Feedback record store.

Two implementations share the FeedbackStore interface: a JSON file store and an
in-memory store. Both keep at most `cap` records, pruning the oldest by
timestamp after every write.

Feedback writes are user-facing: save, delete and clear raise StoreError on
failure. Reads log the failure and return an empty result.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path

from models.learning import ChangeCount, FeedbackRecord, FeedbackSummary
from utils.json_store import JsonObjectStore, StoreError, oldest_ids, run_blocking

logger = logging.getLogger(__name__)

FEEDBACK_CAP = 1000
FEEDBACK_FILE = "feedback-records.json"
DIAGRAM_SOURCES = ("local-parser", "llm-modify", "template")


def compute_summary(records: list[FeedbackRecord]) -> FeedbackSummary:
    """Aggregate ratings, sources and diff operations across records.

    Args:
        records: Feedback records in any order.

    Returns:
        FeedbackSummary. average_rating is None when no record has a rating.
    """
    rating_distribution = {rating: 0 for rating in range(1, 6)}
    source_distribution = {source: 0 for source in DIAGRAM_SOURCES}
    change_counts: Counter[str] = Counter()
    ratings: list[int] = []
    total_modifications = 0

    for record in records:
        if record.user_rating is not None:
            rating_distribution[record.user_rating] += 1
            ratings.append(record.user_rating)

        source_distribution[record.diagram_source] += 1

        operations = record.spec_diff.operations
        total_modifications += len(operations)
        change_counts.update(op.type for op in operations)

    most_common = sorted(change_counts.items(), key=lambda item: (-item[1], item[0]))[:5]

    return FeedbackSummary(
        total_records=len(records),
        average_rating=sum(ratings) / len(ratings) if ratings else None,
        rating_distribution=rating_distribution,
        source_distribution=source_distribution,
        total_modifications=total_modifications,
        most_common_changes=[ChangeCount(type=t, count=c) for t, c in most_common],
    )


class FeedbackStore(ABC):
    """Interface shared by the feedback store implementations."""

    @abstractmethod
    async def save(self, record: FeedbackRecord) -> None:
        """Insert or overwrite a record by id, then apply retention."""

    @abstractmethod
    async def get_by_id(self, record_id: str) -> FeedbackRecord | None: ...

    @abstractmethod
    async def get_all(self) -> list[FeedbackRecord]: ...

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Delete a record. Returns False if no record had that id."""

    @abstractmethod
    async def clear(self) -> None: ...

    async def get_by_session(self, session_id: str) -> list[FeedbackRecord]:
        return [r for r in await self.get_all() if r.session_id == session_id]

    async def get_summary(self) -> FeedbackSummary:
        return compute_summary(await self.get_all())


class InMemoryFeedbackStore(FeedbackStore):
    """Feedback store kept in process memory."""

    def __init__(self, cap: int = FEEDBACK_CAP):
        self.cap = cap
        self._records: dict[str, FeedbackRecord] = {}

    async def save(self, record: FeedbackRecord) -> None:
        self._records[record.id] = record
        timestamps = {rid: r.timestamp for rid, r in self._records.items()}
        for old_id in oldest_ids(timestamps, self.cap):
            del self._records[old_id]

    async def get_by_id(self, record_id: str) -> FeedbackRecord | None:
        return self._records.get(record_id)

    async def get_all(self) -> list[FeedbackRecord]:
        return list(self._records.values())

    async def count(self) -> int:
        return len(self._records)

    async def delete(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None

    async def clear(self) -> None:
        self._records.clear()


class JsonFeedbackStore(FeedbackStore):
    """Feedback store persisted to a JSON file under the data directory.

    File I/O runs in the default executor so the event loop is never blocked.
    """

    def __init__(self, data_dir: Path, cap: int = FEEDBACK_CAP):
        self.cap = cap
        self._store = JsonObjectStore(data_dir / FEEDBACK_FILE)

    async def save(self, record: FeedbackRecord) -> None:
        try:
            pruned = await run_blocking(
                self._store.put, record.id, record.model_dump(mode="json"), self.cap
            )
        except (OSError, ValueError) as exc:
            logger.error("Failed to save feedback record %s: %s", record.id, exc)
            raise StoreError(f"Failed to save feedback record '{record.id}'") from exc
        if pruned:
            logger.info("Pruned %s old feedback records", len(pruned))

    async def get_by_id(self, record_id: str) -> FeedbackRecord | None:
        try:
            data = await run_blocking(self._store.get, record_id)
            return FeedbackRecord.model_validate(data) if data is not None else None
        except (OSError, ValueError) as exc:
            logger.error("Failed to get feedback record %s: %s", record_id, exc)
            return None

    async def get_all(self) -> list[FeedbackRecord]:
        try:
            rows = await run_blocking(self._store.all)
            return [FeedbackRecord.model_validate(row) for row in rows]
        except (OSError, ValueError) as exc:
            logger.error("Failed to get feedback records: %s", exc)
            return []

    async def count(self) -> int:
        try:
            return await run_blocking(self._store.count)
        except (OSError, ValueError) as exc:
            logger.error("Failed to count feedback records: %s", exc)
            return 0

    async def delete(self, record_id: str) -> bool:
        try:
            return await run_blocking(self._store.delete, record_id)
        except (OSError, ValueError) as exc:
            logger.error("Failed to delete feedback record %s: %s", record_id, exc)
            raise StoreError(f"Failed to delete feedback record '{record_id}'") from exc

    async def clear(self) -> None:
        try:
            await run_blocking(self._store.clear)
        except (OSError, ValueError) as exc:
            logger.error("Failed to clear feedback records: %s", exc)
            raise StoreError("Failed to clear feedback records") from exc
