"""Abstract interface for lease change handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..events import LeasesChanged


class LeaseHandler(ABC):
    """Base class for handlers managed by :class:`HandlerRegistry`."""

    @abstractmethod
    def on_leases_changed(self, event: LeasesChanged) -> None:
        """React to ``event`` after it has been durably persisted."""
