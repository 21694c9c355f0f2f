"""Event primitives dispatched by the handler registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .lease import Lease, LeaseSet


@dataclass(frozen=True)
class LeasesChanged:
    """Published after a new lease set has been durably persisted.

    ``leases`` is the complete new set; ``latest`` is the lease whose change
    triggered the replacement, when the allocator supplied one.
    """

    leases: LeaseSet
    latest: Optional[Lease] = None
