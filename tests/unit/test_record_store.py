"""Tests for the in-memory record store."""
import pytest


from sleepio.core.repositories.record_store import RecordStore


class TestRecordStore:
    def test_append_keeps_logging_order(self, record_factory):
        store = RecordStore()
        first = store.append(record_factory(day=3))
        second = store.append(record_factory(day=1))

        assert store.records() == (first, second)
        assert len(store) == 2

    def test_history_newest_first(self, record_factory):
        store = RecordStore([record_factory(day=d) for d in (2, 0, 5, 1)])
        assert [r.date.day for r in store.history()] == [6, 3, 2, 1]

    def test_delete(self, record_factory):
        record = record_factory()
        store = RecordStore([record, record_factory(day=1)])

        assert store.delete(record.record_id) is True
        assert store.get(record.record_id) is None
        assert len(store) == 1

    def test_delete_unknown_id(self, record_factory):
        store = RecordStore([record_factory()])
        assert store.delete("missing") is False
        assert len(store) == 1

    def test_duplicate_id_rejected(self, record_factory):
        record = record_factory()
        store = RecordStore([record])
        with pytest.raises(ValueError):
            store.append(record)

    def test_listeners_get_snapshot_after_each_change(self, record_factory):
        store = RecordStore()
        seen = []
        store.subscribe(lambda records: seen.append(len(records)))

        first = store.append(record_factory())
        store.append(record_factory(day=1))
        store.delete(first.record_id)
        store.delete("missing")

        assert seen == [1, 2, 1]

    def test_snapshot_is_immutable_copy(self, record_factory):
        store = RecordStore([record_factory()])
        snapshot = store.records()
        store.append(record_factory(day=1))
        assert len(snapshot) == 1

    def test_to_dataframe(self, healthy_records):
        df = RecordStore(healthy_records).to_dataframe()
        assert len(df) == len(healthy_records)
        assert {"duration_hours", "quality", "caffeine"} <= set(df.columns)
