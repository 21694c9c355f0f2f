"""Edge-triggered reconciliation of the status listeners."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Callable, Iterable

from multilisten import ListenerPool, ReconcileResult

LOG = logging.getLogger(__name__)


class ReconfigureWatcher(Thread):
    """Reconcile the listener pool whenever a reconfiguration is requested.

    :meth:`request` only sets an event, so it is safe to call from a signal
    handler.  Requests that arrive while a reconciliation is running collapse
    into a single follow-up pass.
    """

    def __init__(
        self,
        pool: ListenerPool,
        source: Callable[[], Iterable[str]],
        stop_event: Event,
        *,
        wake_interval: float = 1.0,
    ) -> None:
        super().__init__(daemon=True, name="reconfigure")
        self._pool = pool
        self._source = source
        self._stop_event = stop_event
        self._requested = Event()
        self._wake_interval = wake_interval

    def request(self) -> None:
        self._requested.set()

    def run(self) -> None:
        while not self._stop_event.is_set():
            if not self._requested.wait(self._wake_interval):
                continue
            self._requested.clear()
            if self._stop_event.is_set():
                break
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged
                LOG.exception("updating listeners failed")

    def poll(self) -> ReconcileResult:
        targets = frozenset(self._source())
        LOG.debug("reconciling listeners against %s", sorted(targets))
        result = self._pool.reconcile(targets)
        for host, failure in result.failed.items():
            LOG.warning("listener for %s not started: %s", host, failure.cause)
        return result
