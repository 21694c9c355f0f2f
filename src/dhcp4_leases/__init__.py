"""Lease state for the DHCPv4 daemon.

This package keeps the authoritative record of issued leases and tells
cooperating processes when it changes:

* :class:`~dhcp4_leases.store.LeaseStore` holds the current lease set in
  memory and mirrors every replacement to a JSON file using a temp file and
  an atomic rename, so a crash never leaves a truncated snapshot behind;
* :class:`~dhcp4_leases.notifier.ChangeNotifier` is the callback handed to
  the allocator: it persists the new set and then dispatches a
  :class:`~dhcp4_leases.events.LeasesChanged` event;
* :class:`~dhcp4_leases.registry.HandlerRegistry` fans that event out to
  handlers such as the ``non_expired_leases`` gauge and the DNS daemon
  signaller.

The address allocation state machine itself lives elsewhere; it only sees
the notifier callback.
"""

from .errors import (  # noqa: F401
    BindFailure,
    CorruptState,
    LeaseStateError,
    NotifyFailure,
    PersistFailure,
    StopFailure,
)
from .events import LeasesChanged  # noqa: F401
from .lease import Lease, LeaseSet  # noqa: F401
from .notifier import ChangeNotifier  # noqa: F401
from .registry import HandlerRegistry  # noqa: F401
from .store import LeaseStore  # noqa: F401

__all__ = [
    "BindFailure",
    "ChangeNotifier",
    "CorruptState",
    "HandlerRegistry",
    "Lease",
    "LeaseSet",
    "LeaseStateError",
    "LeaseStore",
    "LeasesChanged",
    "NotifyFailure",
    "PersistFailure",
    "StopFailure",
]
