"""Tests for the JSON object store primitives."""

import json
from datetime import datetime, timezone

import pytest

from utils.json_store import (
    STORE_VERSION,
    JsonObjectStore,
    atomic_write_text,
    oldest_ids,
    parse_timestamp,
    probe_writable,
)


def utc(second: int) -> datetime:
    return datetime(2026, 1, 1, 0, 0, second, tzinfo=timezone.utc)


def test_oldest_ids_orders_by_timestamp_then_id():
    timestamps = {"c": utc(2), "b": utc(1), "a": utc(1), "d": utc(3)}

    assert oldest_ids(timestamps, 2) == ["a", "b"]
    assert oldest_ids(timestamps, 4) == []
    assert oldest_ids(timestamps, 10) == []


def test_parse_timestamp_requires_offset():
    assert parse_timestamp("2026-01-01T09:00:00+09:00") == utc(0)
    assert parse_timestamp("2026-01-01T00:00:00Z") == utc(0)

    with pytest.raises(ValueError):
        parse_timestamp("2026-01-01T00:00:00")
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")


def test_atomic_write_creates_parent_dirs(tmp_path):
    target = tmp_path / "nested" / "dir" / "file.json"

    atomic_write_text(target, "{}")

    assert target.read_text(encoding="utf-8") == "{}"
    assert list(target.parent.iterdir()) == [target]


def test_probe_writable(tmp_path):
    assert probe_writable(tmp_path / "learning")
    assert not (tmp_path / "learning" / ".write-probe").exists()

    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    assert not probe_writable(blocker / "learning")


def test_put_get_delete(tmp_path):
    store = JsonObjectStore(tmp_path / "records.json")

    assert store.all() == []
    assert store.get("r1") is None

    store.put("r1", {"id": "r1", "timestamp": "t1"})
    store.put("r1", {"id": "r1", "timestamp": "t2"})

    assert store.count() == 1
    assert store.get("r1") == {"id": "r1", "timestamp": "t2"}
    assert store.delete("r1") is True
    assert store.delete("r1") is False
    assert store.count() == 0


def test_file_format(tmp_path):
    path = tmp_path / "records.json"
    store = JsonObjectStore(path)

    store.put("r1", {"id": "r1", "timestamp": "t1"})

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {"version": STORE_VERSION, "records": {"r1": {"id": "r1", "timestamp": "t1"}}}


def test_put_prunes_oldest_beyond_cap(tmp_path):
    store = JsonObjectStore(tmp_path / "records.json")

    for i in range(3):
        assert store.put(f"r{i}", {"timestamp": f"2026-01-01T00:00:0{i}+00:00"}, cap=3) == []
    pruned = store.put("r3", {"timestamp": "2026-01-01T00:00:03+00:00"}, cap=3)

    assert pruned == ["r0"]
    assert store.count() == 3
    assert store.get("r0") is None


def test_clear(tmp_path):
    store = JsonObjectStore(tmp_path / "records.json")
    store.put("r1", {"timestamp": "t"})

    store.clear()

    assert store.all() == []


@pytest.mark.parametrize(
    "content,match",
    [
        ("{not json", "Invalid JSON"),
        ("[]", "root must be an object"),
        ('{"version": "2.0", "records": {}}', "unsupported version"),
        ('{"version": "1.0", "records": []}', "'records' must be an object"),
    ],
)
def test_load_rejects_malformed_files(tmp_path, content, match):
    path = tmp_path / "records.json"
    path.write_text(content, encoding="utf-8")
    store = JsonObjectStore(path)

    with pytest.raises(ValueError, match=match):
        store.all()


def test_put_prunes_by_instant_across_offsets(tmp_path):
    store = JsonObjectStore(tmp_path / "records.json")

    # 09:00+09:00 is midnight UTC, an hour before 01:00Z
    store.put("older", {"timestamp": "2026-01-01T09:00:00+09:00"}, cap=1)
    pruned = store.put("newer", {"timestamp": "2026-01-01T01:00:00+00:00"}, cap=1)

    assert pruned == ["older"]
    assert store.get("newer") is not None


def test_put_with_cap_rejects_unparseable_timestamp(tmp_path):
    store = JsonObjectStore(tmp_path / "records.json")

    with pytest.raises(ValueError):
        store.put("r1", {"timestamp": "not a timestamp"}, cap=5)
    assert store.all() == []
