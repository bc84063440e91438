"""File-backed key-value object store for learning records.

Each store is a single JSON file:

    {"version": "1.0", "records": {"<id>": {...}, ...}}

Records are keyed by id, so writing the same id twice overwrites. Every
mutation is a read-modify-write under a lock followed by an atomic replace of
the file, so readers never see a half-written file.
"""

import asyncio
import json
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path

from pydantic import AwareDatetime, TypeAdapter

STORE_VERSION = "1.0"

_TIMESTAMP = TypeAdapter(AwareDatetime)


class StoreError(Exception):
    """A persistence operation on a learning store failed."""


async def run_blocking(fn, *args):
    """Run a blocking store call in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fn, *args)


def atomic_write_text(path: Path, text: str) -> None:
    """Atomically write text to a file.

    Creates parent directories if needed, writes to a temporary file in the
    same directory, then replaces the target.

    Args:
        path: Target file path.
        text: Text content to write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w", encoding="utf-8", dir=path.parent, delete=False
    ) as tmp_file:
        tmp_path = Path(tmp_file.name)
        tmp_file.write(text)

    try:
        os.replace(tmp_path, path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def probe_writable(directory: Path) -> bool:
    """Check that directory can be created and written to.

    Returns:
        True if a probe file could be written and removed, False otherwise.
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
        probe = directory / ".write-probe"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()
        return True
    except OSError:
        return False


def parse_timestamp(value) -> datetime:
    """Parse a stored ISO-8601 timestamp; raises ValueError if it has no offset."""
    return _TIMESTAMP.validate_python(value)


def oldest_ids(timestamps: dict[str, datetime], cap: int) -> list[str]:
    """Return the ids to prune so that at most cap records remain.

    Timestamps are compared as instants, so records written with different
    UTC offsets are ordered correctly.

    Args:
        timestamps: Mapping of record id to timezone-aware timestamp.
        cap: Maximum number of records to keep.

    Returns:
        Ids of the oldest overflow records, ordered by timestamp then id.
    """
    overflow = len(timestamps) - cap
    if overflow <= 0:
        return []
    ordered = sorted(timestamps.items(), key=lambda item: (item[1], item[0]))
    return [record_id for record_id, _ in ordered[:overflow]]


class JsonObjectStore:
    """A single JSON file holding records keyed by id."""

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> dict[str, dict]:
        """Read all records from disk.

        Raises:
            ValueError: If the file is not valid JSON or has an unexpected shape.
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Invalid JSON in '{self.path.name}': {e.msg} at line {e.lineno}, column {e.colno}"
            ) from e

        if not isinstance(data, dict):
            raise ValueError(f"'{self.path.name}': root must be an object")
        if data.get("version") != STORE_VERSION:
            raise ValueError(
                f"'{self.path.name}': unsupported version '{data.get('version')}', "
                f"expected '{STORE_VERSION}'"
            )
        records = data.get("records")
        if not isinstance(records, dict):
            raise ValueError(f"'{self.path.name}': 'records' must be an object")
        return records

    def _write(self, records: dict[str, dict]) -> None:
        payload = {"version": STORE_VERSION, "records": records}
        atomic_write_text(self.path, json.dumps(payload, indent=2, ensure_ascii=True))

    def put(self, record_id: str, record: dict, cap: int | None = None) -> list[str]:
        """Insert or overwrite a record, then prune the oldest beyond cap.

        With a cap, every record must carry a timezone-aware "timestamp".

        Returns:
            Ids of the records pruned by this write.

        Raises:
            ValueError: If the file is corrupt or a timestamp cannot be parsed.
        """
        with self._lock:
            records = self._load()
            records[record_id] = record
            pruned = []
            if cap is not None:
                pruned = oldest_ids(
                    {rid: parse_timestamp(r.get("timestamp")) for rid, r in records.items()}, cap
                )
            for old_id in pruned:
                del records[old_id]
            self._write(records)
        return pruned

    def get(self, record_id: str) -> dict | None:
        with self._lock:
            return self._load().get(record_id)

    def all(self) -> list[dict]:
        with self._lock:
            return list(self._load().values())

    def count(self) -> int:
        with self._lock:
            return len(self._load())

    def delete(self, record_id: str) -> bool:
        """Delete a record. Returns False if it did not exist."""
        with self._lock:
            records = self._load()
            if record_id not in records:
                return False
            del records[record_id]
            self._write(records)
        return True

    def clear(self) -> None:
        with self._lock:
            self._write({})
