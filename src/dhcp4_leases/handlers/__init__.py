"""Lease change handlers that can be attached to the registry."""

from .base import LeaseHandler  # noqa: F401
from .metrics import NonExpiredGauge  # noqa: F401
from .process import ProcessSignalNotifier  # noqa: F401

__all__ = [
    "LeaseHandler",
    "NonExpiredGauge",
    "ProcessSignalNotifier",
]
