# Rev 0.3.0
"""Live queries over the SQLite store.

Every committed write transaction publishes the names of the tables it
touched on an InvalidationTracker. A LiveQuery re-runs its query whenever one
of its observed tables changes and emits the fresh result set.

With an executor the query runs off the owner's thread; the result comes
back through a queued signal, so `resultsChanged` is always emitted on the
thread the LiveQuery lives in, in the order the refreshes were requested.
"""
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import Callable, Iterable, Optional

from PySide6.QtCore import QObject, Signal, Slot

log = logging.getLogger(__name__)


class InvalidationTracker(QObject):
    tablesChanged = Signal(object)

    def notify(self, tables: Iterable[str]) -> None:
        changed = set(tables)
        if changed:
            log.debug("tables changed: %s", sorted(changed))
            self.tablesChanged.emit(changed)


class LiveQuery(QObject):
    """
    Re-emits `resultsChanged(list)` on start() and after every commit that
    touches one of `tables`. Once stopped it stays stopped.
    """

    resultsChanged = Signal(list)
    _loaded = Signal(int, object)

    def __init__(
        self,
        tracker: InvalidationTracker,
        tables: Iterable[str],
        run: Callable[[], list],
        executor: Optional[Executor] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._tracker = tracker
        self._tables = frozenset(tables)
        self._run = run
        self._executor = executor
        self._active = False
        self._stopped = False
        self._requested = 0
        self._delivered = 0
        self._loaded.connect(self._deliver)

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._stopped:
            raise RuntimeError("LiveQuery: a stopped query cannot be restarted")
        if self._active:
            return
        self._active = True
        self._tracker.tablesChanged.connect(self._on_tables_changed)
        self._refresh()

    def stop(self) -> None:
        if not self._active:
            self._stopped = True
            return
        self._active = False
        self._stopped = True
        self._tracker.tablesChanged.disconnect(self._on_tables_changed)

    @Slot(object)
    def _on_tables_changed(self, tables: object) -> None:
        if self._active and self._tables.intersection(tables):
            self._refresh()

    def _refresh(self) -> None:
        self._requested += 1
        seq = self._requested
        if self._executor is None:
            self._deliver(seq, self._run())
            return
        future = self._executor.submit(self._run)
        future.add_done_callback(lambda f: self._finished(seq, f))

    def _finished(self, seq: int, future: Future) -> None:
        # executor thread
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log.error("live query refresh #%d failed", seq, exc_info=exc)
            return
        self._loaded.emit(seq, future.result())

    @Slot(int, object)
    def _deliver(self, seq: int, rows: object) -> None:
        # a stale result never overwrites a newer one
        if not self._active or seq <= self._delivered:
            return
        self._delivered = seq
        self.resultsChanged.emit(rows)
