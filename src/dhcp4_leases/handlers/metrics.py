"""Prometheus gauge tracking the number of non-expired leases."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from prometheus_client import CollectorRegistry, Gauge

from ..events import LeasesChanged
from ..lease import Lease, count_non_expired
from .base import LeaseHandler


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NonExpiredGauge(LeaseHandler):
    """Recompute ``non_expired_leases`` whenever the lease set changes."""

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.registry = registry or CollectorRegistry()
        self._clock = clock
        self._gauge = Gauge(
            "non_expired_leases",
            "Number of non-expired DHCP leases",
            registry=self.registry,
        )

    def update(self, leases: Iterable[Lease]) -> int:
        value = count_non_expired(leases, self._clock())
        self._gauge.set(value)
        return value

    def on_leases_changed(self, event: LeasesChanged) -> None:
        self.update(event.leases)
