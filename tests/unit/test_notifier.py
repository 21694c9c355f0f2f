import errno
import os
from pathlib import Path

import pytest

from dhcp4_leases import (
    ChangeNotifier,
    HandlerRegistry,
    Lease,
    LeasesChanged,
    LeaseStore,
    NotifyFailure,
    PersistFailure,
)
from dhcp4_leases.handlers import LeaseHandler


class RecordingHandler(LeaseHandler):
    def __init__(self, log, name):
        self.log = log
        self.name = name

    def on_leases_changed(self, event: LeasesChanged) -> None:
        self.log.append((self.name, event))


class FailingHandler(LeaseHandler):
    def __init__(self, log):
        self.log = log

    def on_leases_changed(self, event: LeasesChanged) -> None:
        self.log.append(("failing", event))
        raise NotifyFailure("dnsd is not running")


def lease(num: int) -> Lease:
    return Lease(num=num, addr=f"10.0.0.{num}", hardware_addr=f"02:00:00:00:00:{num:02x}")


def build(tmp_path: Path):
    store = LeaseStore(tmp_path / "leases.json")
    registry = HandlerRegistry()
    return store, registry, ChangeNotifier(store, registry)


def test_handlers_run_in_order_after_persisting(tmp_path: Path):
    store, registry, notifier = build(tmp_path)
    log = []
    registry.register("first", RecordingHandler(log, "first"))
    registry.register("second", RecordingHandler(log, "second"))

    leases = [lease(1), lease(2)]
    result = notifier.replace(leases, latest=leases[1])

    assert result == tuple(leases)
    assert store.path.exists()
    assert [name for name, _ in log] == ["first", "second"]
    assert log[0][1] == LeasesChanged(leases=tuple(leases), latest=leases[1])


def test_notification_failure_does_not_fail_replace(tmp_path: Path):
    store, registry, notifier = build(tmp_path)
    log = []
    registry.register("dnsd", FailingHandler(log))
    registry.register("after", RecordingHandler(log, "after"))

    notifier([lease(1)], lease(1))

    assert store.snapshot() == (lease(1),)
    assert [name for name, _ in log] == ["failing", "after"]


def test_exactly_one_attempt_per_replace(tmp_path: Path):
    store, registry, notifier = build(tmp_path)
    log = []
    registry.register("dnsd", FailingHandler(log))

    notifier.replace([lease(1)])
    notifier.replace([lease(1), lease(2)])

    assert len(log) == 2


def test_persist_failure_skips_handlers(tmp_path: Path, monkeypatch):
    store, registry, notifier = build(tmp_path)
    log = []
    registry.register("recorder", RecordingHandler(log, "recorder"))

    def fail(src, dst):
        raise OSError(errno.EROFS, "Read-only file system")

    monkeypatch.setattr(os, "replace", fail)

    with pytest.raises(PersistFailure):
        notifier.replace([lease(1)])

    assert log == []
    assert store.snapshot() == ()
