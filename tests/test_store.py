"""Tests for the in-memory record store."""

import pytest

from stockboard.exceptions import DuplicateStockError
from stockboard.models import RECORD_METRIC_FIELDS, UNSET
from stockboard.store import InMemoryStockStore, StockStore


@pytest.fixture
def store():
    return InMemoryStockStore()


class TestAddStock:
    def test_new_record_has_every_metric_unset(self, store):
        record = store.add_stock("TCS", name="Tata Consultancy Services")

        assert set(RECORD_METRIC_FIELDS) <= set(record.metrics)
        assert all(record.metrics[k] == UNSET for k in RECORD_METRIC_FIELDS)
        assert store.get(record.record_id) is record

    def test_duplicate_symbol_rejected(self, store):
        store.add_stock("TCS")
        with pytest.raises(DuplicateStockError, match="TCS"):
            store.add_stock("TCS")

    def test_symbol_uniqueness_is_case_sensitive(self, store):
        store.add_stock("TCS")
        store.add_stock("tcs")
        assert len(store.list_records()) == 2

    def test_manual_entries_unique_by_name_ignoring_case(self, store):
        store.add_stock("ACME1", name="Acme Widgets", is_manual_entry=True)
        with pytest.raises(DuplicateStockError):
            store.add_stock("ACME2", name="ACME widgets", is_manual_entry=True)

    def test_name_clash_with_non_manual_entry_is_allowed(self, store):
        store.add_stock("ACME", name="Acme Widgets")
        store.add_stock("ACME-M", name="Acme Widgets", is_manual_entry=True)
        assert len(store.list_records()) == 2


class TestWritesAndListeners:
    @pytest.mark.asyncio
    async def test_write_record_updates_metrics(self, store):
        record = store.add_stock("TCS")

        result = await store.write_record(record.record_id, {"pe_ratio": 29.8, "beta": None})

        assert result.success
        assert record.metrics["pe_ratio"] == 29.8
        assert record.metrics["beta"] == UNSET

    @pytest.mark.asyncio
    async def test_write_unknown_record(self, store):
        result = await store.write_record("nope", {"pe_ratio": 1.0})
        assert not result.success
        assert "nope" in result.error

    @pytest.mark.asyncio
    async def test_listeners_receive_snapshots(self, store):
        snapshots = []
        unsubscribe = store.subscribe(snapshots.append)
        assert snapshots == [[]]

        record = store.add_stock("TCS")
        await store.write_record(record.record_id, {"roe": 46.5})
        await store.delete_record(record.record_id)

        assert [len(s) for s in snapshots] == [0, 1, 1, 0]
        assert snapshots[2][0].metrics["roe"] == 46.5
        # Snapshots are copies
        assert snapshots[1][0] is not record

        unsubscribe()
        store.add_stock("INFY")
        assert len(snapshots) == 4

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, store):
        received = []

        def broken(_):
            raise ValueError("listener bug")

        store.subscribe(lambda s: None)
        store._listeners.append(broken)
        store.subscribe(received.append)

        store.add_stock("TCS")
        assert len(received[-1]) == 1

    @pytest.mark.asyncio
    async def test_delete_and_delete_all(self, store):
        a = store.add_stock("TCS")
        store.add_stock("INFY")

        assert (await store.delete_record(a.record_id)).success
        assert not (await store.delete_record(a.record_id)).success
        assert (await store.delete_all()).success
        assert store.list_records() == []


def test_in_memory_store_satisfies_protocol():
    store: StockStore = InMemoryStockStore()
    assert callable(store.subscribe)
    assert callable(store.write_record)
    assert callable(store.delete_record)
