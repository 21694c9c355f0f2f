"""Pool of network listeners kept in sync with a changing address set."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock, Thread
from typing import Callable, Dict, Iterable, List, Optional

from dhcp4_leases.errors import BindFailure, StopFailure

LOG = logging.getLogger(__name__)


class Listener(ABC):
    """A network endpoint bound to a single host address."""

    @abstractmethod
    def bind(self) -> None:
        """Acquire the socket; raise :class:`OSError` if that is impossible."""

    @abstractmethod
    def serve_forever(self) -> None:
        """Serve requests until :meth:`close` is called."""

    @abstractmethod
    def close(self) -> None:
        """Stop serving and release the socket."""


ListenerFactory = Callable[[str], Listener]


class EndpointState(Enum):
    ABSENT = "absent"
    STARTING = "starting"
    LIVE = "live"
    STOPPING = "stopping"


@dataclass
class Endpoint:
    """Live listener owned by the pool."""

    host: str
    listener: Listener
    state: EndpointState = EndpointState.STARTING
    thread: Optional[Thread] = None


@dataclass
class ReconcileResult:
    """Outcome of a :meth:`ListenerPool.reconcile` call."""

    started: List[str] = field(default_factory=list)
    stopped: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    failed: Dict[str, BindFailure] = field(default_factory=dict)
    stop_failures: Dict[str, StopFailure] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.started or self.stopped or self.failed)


class ListenerPool:
    """Keep one listener per target address.

    :meth:`reconcile` only touches the difference between the live set and
    the requested set: listeners for addresses present in both are left
    running.  A bind failure on one address is recorded in the result and
    does not affect the others.
    """

    def __init__(self, listener_for: ListenerFactory, *, stop_timeout: float = 5.0) -> None:
        self._listener_for = listener_for
        self._stop_timeout = stop_timeout
        self._endpoints: Dict[str, Endpoint] = {}
        self._lock = Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def live(self) -> List[str]:
        with self._lock:
            return sorted(
                host
                for host, endpoint in self._endpoints.items()
                if endpoint.state is EndpointState.LIVE
            )

    def state(self, host: str) -> EndpointState:
        with self._lock:
            endpoint = self._endpoints.get(host)
            return endpoint.state if endpoint else EndpointState.ABSENT

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------
    def reconcile(self, targets: Iterable[str]) -> ReconcileResult:
        desired = list(dict.fromkeys(str(t) for t in targets))
        result = ReconcileResult()

        with self._lock:
            if self._closed:
                raise RuntimeError("listener pool is closed")

            for host in desired:
                if host in self._endpoints:
                    result.unchanged.append(host)
                    continue
                failure = self._start(host)
                if failure is None:
                    result.started.append(host)
                else:
                    result.failed[host] = failure

            for host in [h for h in self._endpoints if h not in desired]:
                failure = self._stop(host)
                result.stopped.append(host)
                if failure is not None:
                    result.stop_failures[host] = failure

        if result.changed:
            LOG.info(
                "listeners reconciled: started=%s stopped=%s failed=%s",
                result.started,
                result.stopped,
                sorted(result.failed),
            )
        return result

    def _start(self, host: str) -> Optional[BindFailure]:
        try:
            listener = self._listener_for(host)
        except Exception as exc:
            LOG.error("creating listener for %s failed: %s", host, exc)
            return BindFailure(host, exc)

        endpoint = Endpoint(host=host, listener=listener)
        self._endpoints[host] = endpoint
        try:
            listener.bind()
        except Exception as exc:
            del self._endpoints[host]
            LOG.error("listening on %s failed: %s", host, exc)
            return BindFailure(host, exc)

        endpoint.thread = Thread(
            target=self._serve,
            args=(host, listener),
            daemon=True,
            name=f"listener-{host}",
        )
        endpoint.state = EndpointState.LIVE
        endpoint.thread.start()
        LOG.info("now listening on %s", host)
        return None

    def _serve(self, host: str, listener: Listener) -> None:
        try:
            listener.serve_forever()
        except Exception as exc:
            LOG.error("ListenAndServe(%s): %s", host, exc)

    def _stop(self, host: str) -> Optional[StopFailure]:
        endpoint = self._endpoints[host]
        endpoint.state = EndpointState.STOPPING
        LOG.info("no longer listening on %s", host)
        failure: Optional[StopFailure] = None
        try:
            endpoint.listener.close()
        except Exception as exc:
            LOG.warning("closing listener on %s failed: %s", host, exc)
            failure = StopFailure(host, exc)
        if endpoint.thread is not None:
            endpoint.thread.join(self._stop_timeout)
            if endpoint.thread.is_alive():
                LOG.warning("listener thread for %s did not exit within %ss",
                            host, self._stop_timeout)
        endpoint.state = EndpointState.ABSENT
        del self._endpoints[host]
        return failure

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------
    def close(self) -> Dict[str, StopFailure]:
        """Stop every live listener; stop failures are logged and returned."""

        failures: Dict[str, StopFailure] = {}
        with self._lock:
            self._closed = True
            for host in list(self._endpoints):
                failure = self._stop(host)
                if failure is not None:
                    failures[host] = failure
        return failures

    def __enter__(self) -> "ListenerPool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
