"""Entry point for the dhcp4d lease state agent."""

from __future__ import annotations

import argparse
import importlib
import logging
import signal
import sys
from pathlib import Path
from threading import Event, Thread
from typing import Callable, List, Optional

from dhcp4_leases import (
    ChangeNotifier,
    CorruptState,
    HandlerRegistry,
    Lease,
    LeaseStore,
    PersistFailure,
)
from dhcp4_leases.handlers import NonExpiredGauge, ProcessSignalNotifier
from multilisten import ListenerPool, WSGIListener

from .addresses import InterfaceAddressSource
from .config import load_config
from .reconfigure import ReconfigureWatcher
from .status import create_app

LOG = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("/etc/dhcp4d/agent.yaml")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def load_allocator(target: str) -> Callable:
    """Resolve ``package.module:factory`` to the allocator factory.

    The factory is called with the initial lease set and the lease change
    callback and must return a blocking ``serve()`` callable.
    """

    module_name, _, attr = target.partition(":")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ValueError(f"allocator '{target}' not found") from None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the dhcp4d lease state agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if not args.config.exists():
        LOG.info("config file %s not found, using defaults", args.config)
    config = load_config(args.config)

    store = LeaseStore(config.leases.path)
    try:
        leases = store.load()
    except CorruptState as exc:
        LOG.error("refusing to start: %s", exc)
        return 1

    gauge = NonExpiredGauge()
    gauge.update(leases)

    registry = HandlerRegistry()
    registry.register("non_expired_leases", gauge)
    for process in config.notify.processes:
        registry.register(
            f"notify:{process}",
            ProcessSignalNotifier(process, config.notify.signal),
        )
    notifier = ChangeNotifier(store, registry)

    app = create_app(store, gauge.registry)
    port = config.status.port
    pool = ListenerPool(lambda host: WSGIListener(host, port, app))
    source = InterfaceAddressSource(
        config.status.extra_addresses,
        include_loopback=config.status.include_loopback,
    )

    stop_event = Event()
    fatal: List[BaseException] = []

    def _fail(exc: BaseException) -> None:
        fatal.append(exc)
        stop_event.set()

    def on_leases(new_leases: List[Lease], latest: Optional[Lease] = None):
        try:
            return notifier.replace(new_leases, latest)
        except PersistFailure as exc:
            _fail(exc)
            raise

    with pool:
        watcher = ReconfigureWatcher(pool, source, stop_event)
        try:
            watcher.poll()
        except Exception:
            LOG.exception("initial listener setup failed")
            return 1
        watcher.start()

        allocator_thread: Optional[Thread] = None
        if config.allocator:
            try:
                serve = load_allocator(config.allocator)(store.snapshot(), on_leases)
            except Exception:
                LOG.exception("loading allocator %s failed", config.allocator)
                stop_event.set()
                watcher.join()
                return 1

            def _run_allocator() -> None:
                try:
                    serve()
                except Exception as exc:
                    LOG.exception("allocator stopped with an error")
                    _fail(exc)
                    return
                LOG.info("allocator exited")
                stop_event.set()

            allocator_thread = Thread(target=_run_allocator, daemon=True, name="allocator")
            allocator_thread.start()
        else:
            LOG.warning("no allocator configured; serving the stored leases only")

        def _reconfigure(signum, frame):  # pragma: no cover - signal handler
            LOG.info("received signal %s, updating listeners", signum)
            watcher.request()

        def _shutdown(signum, frame):  # pragma: no cover - signal handler
            LOG.info("received signal %s, shutting down", signum)
            stop_event.set()

        previous = {
            signal.SIGUSR1: signal.signal(signal.SIGUSR1, _reconfigure),
            signal.SIGINT: signal.signal(signal.SIGINT, _shutdown),
            signal.SIGTERM: signal.signal(signal.SIGTERM, _shutdown),
        }

        try:
            while not stop_event.is_set():
                stop_event.wait(1.0)
        except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
            stop_event.set()
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)

        watcher.join()
        if allocator_thread is not None:
            allocator_thread.join(timeout=5)

    if fatal:
        LOG.error("dhcp4d agent stopped: %s", fatal[0])
        return 1
    LOG.info("dhcp4d agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
