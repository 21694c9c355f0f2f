import time
from threading import Event

from dhcp4d_agent.reconfigure import ReconfigureWatcher
from multilisten import Listener, ListenerPool


class IdleListener(Listener):
    def __init__(self, host):
        self.host = host
        self._closed = Event()

    def bind(self) -> None:
        if self.host.startswith("192.0.2."):
            raise OSError(99, "Cannot assign requested address")

    def serve_forever(self) -> None:
        self._closed.wait()

    def close(self) -> None:
        self._closed.set()


class MutableSource:
    def __init__(self, *hosts):
        self.hosts = set(hosts)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return set(self.hosts)


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_poll_reconciles_against_source():
    source = MutableSource("10.0.0.1", "192.0.2.1")
    with ListenerPool(IdleListener) as pool:
        watcher = ReconfigureWatcher(pool, source, Event())

        result = watcher.poll()

        assert result.started == ["10.0.0.1"]
        assert list(result.failed) == ["192.0.2.1"]
        assert pool.live() == ["10.0.0.1"]


def test_requests_trigger_reconciliation():
    source = MutableSource("10.0.0.1")
    stop_event = Event()
    with ListenerPool(IdleListener) as pool:
        watcher = ReconfigureWatcher(pool, source, stop_event, wake_interval=0.05)
        watcher.poll()
        watcher.start()
        try:
            source.hosts = {"10.0.0.2"}
            watcher.request()

            assert wait_for(lambda: pool.live() == ["10.0.0.2"])
        finally:
            stop_event.set()
            watcher.join(timeout=5)

    assert not watcher.is_alive()


def test_watcher_does_not_poll_without_request():
    source = MutableSource("10.0.0.1")
    stop_event = Event()
    with ListenerPool(IdleListener) as pool:
        watcher = ReconfigureWatcher(pool, source, stop_event, wake_interval=0.01)
        watcher.start()
        time.sleep(0.1)
        stop_event.set()
        watcher.join(timeout=5)

        assert source.calls == 0
        assert pool.live() == []
