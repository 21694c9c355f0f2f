"""Durable, concurrency-safe store of the current lease set."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Iterable

from .errors import CorruptState, PersistFailure
from .lease import Lease, LeaseSet, dump_leases, parse_leases

LOG = logging.getLogger(__name__)


class LeaseStore:
    """Own the authoritative lease set and its on-disk snapshot.

    The in-memory set is an immutable tuple.  :meth:`replace` persists a new
    tuple and then swaps the reference, so readers calling :meth:`snapshot`
    observe either the complete old set or the complete new set.  Writers are
    serialised by their own lock which readers never touch; the reader lock
    is only held for the reference copy.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._leases: LeaseSet = ()
        self._ref_lock = Lock()
        self._write_lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LeaseSet:
        """Install the durable snapshot as the current set and return it."""

        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            LOG.info("lease file %s does not exist yet, starting empty", self._path)
            leases: LeaseSet = ()
        else:
            try:
                leases = parse_leases(raw.decode("utf-8"))
            except ValueError as exc:
                raise CorruptState(self._path, exc) from exc
            LOG.info("loaded %d leases from %s", len(leases), self._path)

        with self._write_lock:
            self._swap(leases)
        return leases

    def snapshot(self) -> LeaseSet:
        with self._ref_lock:
            return self._leases

    def replace(self, leases: Iterable[Lease]) -> LeaseSet:
        """Persist ``leases`` and make them the current set.

        Raises :class:`PersistFailure` if the snapshot could not be written;
        the current set is left untouched in that case.
        """

        new_set: LeaseSet = tuple(leases)
        with self._write_lock:
            try:
                self._write_atomic(dump_leases(new_set))
            except OSError as exc:
                LOG.error("persisting %d leases to %s failed: %s", len(new_set), self._path, exc)
                raise PersistFailure(self._path, exc) from exc
            self._swap(new_set)
        LOG.debug("persisted %d leases to %s", len(new_set), self._path)
        return new_set

    def _swap(self, leases: LeaseSet) -> None:
        with self._ref_lock:
            self._leases = leases

    def _write_atomic(self, content: str) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise
        _fsync_directory(directory)


def _fsync_directory(directory: Path) -> None:
    # The rename already happened; failing here would leave memory behind disk.
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError as exc:  # pragma: no cover - platform specific
        LOG.debug("cannot open %s to fsync: %s", directory, exc)
        return
    try:
        os.fsync(fd)
    except OSError as exc:  # pragma: no cover - platform specific
        LOG.warning("fsync of directory %s failed: %s", directory, exc)
    finally:
        os.close(fd)
