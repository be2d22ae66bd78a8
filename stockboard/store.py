"""
Record-store collaborator.

The extractor never talks to a database. It only writes through a
callback; the StockStore protocol describes what the surrounding
application provides, and InMemoryStockStore is the in-process
implementation used by the CLI and the tests.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Protocol

import structlog

from stockboard.exceptions import DuplicateStockError
from stockboard.models import RawValue, StockRecord, WriteResult

logger = structlog.get_logger(__name__)

Listener = Callable[[list[StockRecord]], None]


class StockStore(Protocol):
    """Push-based document store of tracked stocks."""

    def subscribe(self, listener: Listener) -> Callable[[], None]: ...

    async def write_record(self, record_id: str, fields: dict[str, RawValue]) -> WriteResult: ...

    async def delete_record(self, record_id: str) -> WriteResult: ...


class InMemoryStockStore:
    """
    Dict-backed StockStore.

    Every mutation pushes a fresh snapshot (list of record copies) to all
    subscribers, mirroring a realtime collection listener.
    """

    def __init__(self):
        self._records: dict[str, StockRecord] = {}
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener and push the current snapshot; returns unsubscribe."""
        self._listeners.append(listener)
        listener(self.snapshot())

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def snapshot(self) -> list[StockRecord]:
        return [r.model_copy(deep=True) for r in self._records.values()]

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning("store_listener_failed", error=str(e))

    def add_stock(
        self,
        symbol: str,
        name: str = "",
        is_manual_entry: bool = False,
        record_id: str | None = None,
    ) -> StockRecord:
        """
        Start tracking a stock with every metric unset.

        Raises:
            DuplicateStockError: symbol already tracked (case-sensitive), or a
                manual entry with the same name (case-insensitive) exists
        """
        symbol = symbol.strip()
        if any(r.symbol == symbol for r in self._records.values()):
            raise DuplicateStockError(symbol)

        if is_manual_entry:
            wanted = name.strip().lower()
            for record in self._records.values():
                if record.is_manual_entry and record.name.strip().lower() == wanted:
                    raise DuplicateStockError(name)

        record = StockRecord(
            record_id=record_id or uuid.uuid4().hex,
            symbol=symbol,
            name=name.strip() or symbol,
            is_manual_entry=is_manual_entry,
        )
        self._records[record.record_id] = record
        logger.info("stock_added", symbol=symbol, record_id=record.record_id)
        self._notify()
        return record

    def get(self, record_id: str) -> StockRecord | None:
        return self._records.get(record_id)

    def list_records(self) -> list[StockRecord]:
        """Live records, oldest first. Mutating them bypasses notifications."""
        return sorted(self._records.values(), key=lambda r: r.created_at)

    async def write_record(self, record_id: str, fields: dict[str, RawValue]) -> WriteResult:
        record = self._records.get(record_id)
        if record is None:
            return WriteResult(success=False, error=f"Record not found: {record_id}")
        record.apply_metrics(fields)
        self._notify()
        return WriteResult(success=True)

    async def delete_record(self, record_id: str) -> WriteResult:
        if self._records.pop(record_id, None) is None:
            return WriteResult(success=False, error=f"Record not found: {record_id}")
        self._notify()
        return WriteResult(success=True)

    async def delete_all(self) -> WriteResult:
        self._records.clear()
        self._notify()
        return WriteResult(success=True)
