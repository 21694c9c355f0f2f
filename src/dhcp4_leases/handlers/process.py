"""Signal a cooperating process that the lease set changed.

The DNS daemon re-reads the lease file when it receives ``SIGUSR1``; this
handler finds it in the process table and delivers the signal.  Delivery is
best effort: a missed signal is recovered by the consumer's own periodic
refresh, so nothing is queued or retried here.
"""

from __future__ import annotations

import logging
import signal
from typing import List, Sequence, Union

import psutil

from ..errors import NotifyFailure
from ..events import LeasesChanged
from .base import LeaseHandler

LOG = logging.getLogger(__name__)


def _matches(info: dict, target: str) -> bool:
    cmdline = info.get("cmdline") or []
    candidates = (info.get("exe"), cmdline[0] if cmdline else None, info.get("name"))
    return target in candidates


class ProcessSignalNotifier(LeaseHandler):
    """Send ``signum`` to every process whose executable matches ``process``."""

    def __init__(
        self,
        process: str,
        signum: Union[int, signal.Signals] = signal.SIGUSR1,
    ) -> None:
        self._process = process
        self._signum = signal.Signals(signum)

    @property
    def process(self) -> str:
        return self._process

    def _find(self) -> List[psutil.Process]:
        return [
            proc
            for proc in psutil.process_iter(["pid", "name", "exe", "cmdline"])
            if _matches(proc.info, self._process)
        ]

    def notify(self) -> Sequence[int]:
        """Signal matching processes and return the pids that were reached."""

        procs = self._find()
        if not procs:
            raise NotifyFailure(f"no running process matches {self._process}")

        reached: List[int] = []
        errors: List[str] = []
        for proc in procs:
            try:
                proc.send_signal(self._signum)
            except (psutil.NoSuchProcess, psutil.AccessDenied) as exc:
                errors.append(f"pid {proc.pid}: {exc}")
                continue
            reached.append(proc.pid)

        if not reached:
            raise NotifyFailure(
                f"signalling {self._process} with {self._signum.name} failed: "
                + "; ".join(errors)
            )
        LOG.debug("sent %s to %s (pids %s)", self._signum.name, self._process, reached)
        return reached

    def on_leases_changed(self, event: LeasesChanged) -> None:
        self.notify()
