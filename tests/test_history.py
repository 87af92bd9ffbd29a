"""Tests for query history and the saved-query library."""

from __future__ import annotations

from datetime import timedelta

from conftest import FakeClock

from logscout.history import HistoryStore, LibraryStore
from logscout.models import HistoryRecord, LibraryRecord
from logscout.persistence import PersistHook


class TestHistoryStore:
    def test_add_moves_to_front_and_counts(self, clock: FakeClock) -> None:
        store = HistoryStore(clock=clock)
        store.add("a=1", "p1")
        clock.advance(seconds=5)
        store.add("b=1")
        clock.advance(seconds=5)
        record = store.add("  a=1  ", "p2")

        assert store.filters() == ["a=1", "b=1"]
        assert record is not None
        assert record.execute_count == 2
        assert record.project == "p2"
        assert record.executed_at == clock.now

    def test_blank_filter_ignored(self, clock: FakeClock) -> None:
        saved: list[list[HistoryRecord]] = []
        store = HistoryStore(clock=clock, persist=PersistHook("query history", saved.append))
        assert store.add("   ") is None
        assert len(store) == 0
        assert saved == []

    def test_bounded(self, clock: FakeClock) -> None:
        store = HistoryStore(max_entries=3, clock=clock)
        for i in range(5):
            store.add(f"n={i}")
        assert store.filters() == ["n=4", "n=3", "n=2"]

    def test_persists_on_add(self, clock: FakeClock) -> None:
        saved: list[list[HistoryRecord]] = []
        store = HistoryStore(clock=clock, persist=PersistHook("query history", saved.append))
        store.add("a=1")
        store.add("b=1")
        assert [r.filter for r in saved[-1]] == ["b=1", "a=1"]

    def test_suggestions(self, clock: FakeClock) -> None:
        store = HistoryStore(clock=clock)
        for text in ["severity=ERROR", "resource.type=gce", "severity>=WARNING"]:
            store.add(text)
        assert store.suggestions("sev") == ["severity>=WARNING", "severity=ERROR"]
        assert store.suggestions("sev", limit=1) == ["severity>=WARNING"]
        assert len(store.suggestions()) == 3

    def test_load_orders_and_dedups(self, clock: FakeClock) -> None:
        store = HistoryStore(max_entries=2, clock=clock)
        store.load(
            [
                HistoryRecord(filter="old", executed_at=clock.now - timedelta(hours=2)),
                HistoryRecord(filter="new", executed_at=clock.now),
                HistoryRecord(filter="new", executed_at=clock.now - timedelta(hours=1)),
                HistoryRecord(filter=" ", executed_at=clock.now),
                HistoryRecord(filter="mid", executed_at=clock.now - timedelta(hours=1)),
            ]
        )
        assert store.filters() == ["new", "mid"]


class TestLibraryStore:
    def test_insert(self, clock: FakeClock) -> None:
        store = LibraryStore(clock=clock)
        record = store.upsert(LibraryRecord(name=" Errors ", filter="severity=ERROR\n", project="p1"))
        assert record is not None
        assert record.name == "Errors"
        assert record.filter == "severity=ERROR"
        assert record.updated_at == clock.now
        assert record.use_count == 1

    def test_update_by_name(self, clock: FakeClock) -> None:
        store = LibraryStore(clock=clock)
        store.upsert(LibraryRecord(name="Errors", filter="severity=ERROR"))
        clock.advance(minutes=1)
        store.upsert(LibraryRecord(name="Errors", filter="severity>=ERROR"))

        assert len(store) == 1
        record = store.get("Errors")
        assert record is not None
        assert record.filter == "severity>=ERROR"
        assert record.use_count == 2

    def test_update_by_filter(self, clock: FakeClock) -> None:
        store = LibraryStore(clock=clock)
        store.upsert(LibraryRecord(name="Errors", filter="severity=ERROR"))
        store.upsert(LibraryRecord(name="Renamed", filter="severity=ERROR"))
        assert [r.name for r in store.records] == ["Renamed"]

    def test_most_recent_first(self, clock: FakeClock) -> None:
        store = LibraryStore(clock=clock)
        store.upsert(LibraryRecord(name="a", filter="a=1"))
        clock.advance(minutes=1)
        store.upsert(LibraryRecord(name="b", filter="b=1"))
        clock.advance(minutes=1)
        store.upsert(LibraryRecord(name="a", filter="a=2"))
        assert [r.name for r in store.records] == ["a", "b"]

    def test_blank_ignored(self, clock: FakeClock) -> None:
        store = LibraryStore(clock=clock)
        assert store.upsert(LibraryRecord(name="", filter="a=1")) is None
        assert store.upsert(LibraryRecord(name="x", filter="  ")) is None
        assert len(store) == 0

    def test_bounded(self, clock: FakeClock) -> None:
        store = LibraryStore(max_entries=2, clock=clock)
        for i in range(3):
            store.upsert(LibraryRecord(name=f"q{i}", filter=f"n={i}"))
            clock.advance(seconds=1)
        assert [r.name for r in store.records] == ["q2", "q1"]

    def test_remove(self, clock: FakeClock) -> None:
        saved: list[list[LibraryRecord]] = []
        store = LibraryStore(clock=clock, persist=PersistHook("query library", saved.append))
        store.upsert(LibraryRecord(name="a", filter="a=1"))
        assert store.remove("a") is True
        assert store.remove("a") is False
        assert saved[-1] == []

    def test_load_skips_blank(self, clock: FakeClock) -> None:
        store = LibraryStore(clock=clock)
        store.load(
            [
                LibraryRecord(name="old", filter="a=1", updated_at=clock.now - timedelta(days=1)),
                LibraryRecord(name="", filter="b=1", updated_at=clock.now),
                LibraryRecord(name="new", filter="c=1", updated_at=clock.now),
            ]
        )
        assert [r.name for r in store.records] == ["new", "old"]
