"""Allocation callback: persist a new lease set, then tell whoever cares."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .events import LeasesChanged
from .lease import Lease, LeaseSet
from .registry import HandlerRegistry
from .store import LeaseStore

LOG = logging.getLogger(__name__)


class ChangeNotifier:
    """Wrap :meth:`LeaseStore.replace` with best-effort change notification.

    The allocator calls :meth:`replace` (or the instance itself) with the
    complete new lease set each time it finalises a lease.  Persistence
    errors propagate as :class:`~dhcp4_leases.errors.PersistFailure` and no
    handler runs.  Once the set is on disk every registered handler is given
    exactly one chance to react; handler failures are logged by the registry
    and never undo the committed change.
    """

    def __init__(self, store: LeaseStore, registry: HandlerRegistry) -> None:
        self._store = store
        self._registry = registry

    @property
    def store(self) -> LeaseStore:
        return self._store

    def replace(self, leases: Iterable[Lease], latest: Optional[Lease] = None) -> LeaseSet:
        if latest is not None:
            LOG.info(
                "DHCPACK %s -> %s (%s) until %s",
                latest.hardware_addr,
                latest.addr,
                latest.display_name or "<no hostname>",
                latest.expiry.isoformat() if latest.expiry else "static",
            )

        new_set = self._store.replace(leases)

        failures = self._registry.handle(LeasesChanged(leases=new_set, latest=latest))
        if failures:
            LOG.debug("lease change committed; %d handler(s) failed: %s",
                      len(failures), sorted(failures))
        return new_set

    __call__ = replace
