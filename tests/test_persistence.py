from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from jollykite.state.persistence import FileBlobStorage, MemoryBlobStorage
from jollykite.state.policy import evict_count, is_expired, retention_cutoff

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def test_file_storage_round_trip(tmp_path: Path) -> None:
    storage = FileBlobStorage(tmp_path / "state")

    assert storage.load("jollykite-history") is None
    storage.save("jollykite-history", "[1, 2]")
    storage.save("jollykite-history", "[3]")

    assert storage.load("jollykite-history") == "[3]"
    assert (tmp_path / "state" / "jollykite-history.json").is_file()
    assert not list((tmp_path / "state").glob("*.tmp"))

    storage.delete("jollykite-history")
    storage.delete("jollykite-history")
    assert storage.load("jollykite-history") is None


@pytest.mark.parametrize("key", ["../escape", "a/b", "", "spaces here"])
def test_file_storage_rejects_unsafe_keys(tmp_path: Path, key: str) -> None:
    with pytest.raises(ValueError):
        FileBlobStorage(tmp_path).save(key, "x")


def test_memory_storage() -> None:
    storage = MemoryBlobStorage({"a": "1"})

    assert storage.load("a") == "1"
    storage.delete("a")
    storage.delete("missing")
    assert storage.load("a") is None


def test_retention_cutoff() -> None:
    assert retention_cutoff(NOW, None) is None
    cutoff = retention_cutoff(NOW, timedelta(hours=1))
    assert cutoff == NOW - timedelta(hours=1)
    assert is_expired(NOW - timedelta(hours=2), cutoff)
    assert not is_expired(NOW - timedelta(hours=1), cutoff)
    assert not is_expired(NOW - timedelta(days=30), None)


def test_evict_count_takes_the_larger_of_age_and_overflow() -> None:
    stamps = [NOW - timedelta(minutes=m) for m in (90, 70, 50, 30, 10)]

    assert evict_count(stamps, now=NOW, max_age=None, max_count=None) == 0
    assert evict_count(stamps, now=NOW, max_age=timedelta(hours=1), max_count=None) == 2
    assert evict_count(stamps, now=NOW, max_age=None, max_count=2) == 3
    assert evict_count(stamps, now=NOW, max_age=timedelta(hours=1), max_count=4) == 2
    assert evict_count([], now=NOW, max_age=timedelta(hours=1), max_count=1) == 0
