"""Registry dispatching lease change events to downstream handlers."""

from __future__ import annotations

import logging
from typing import Dict

from .errors import NotifyFailure
from .events import LeasesChanged
from .handlers.base import LeaseHandler

LOG = logging.getLogger(__name__)


class HandlerRegistry:
    """Dispatch :class:`LeasesChanged` events to registered handlers.

    Handlers run synchronously in registration order.  A failing handler is
    logged and skipped; it never prevents the remaining handlers from running
    and never fails the dispatch.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, LeaseHandler] = {}

    def register(self, name: str, handler: LeaseHandler) -> None:
        if name in self._handlers:
            raise ValueError(f"handler '{name}' already registered")
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def names(self) -> list[str]:
        return list(self._handlers)

    def handle(self, event: LeasesChanged) -> Dict[str, Exception]:
        if not isinstance(event, LeasesChanged):
            raise TypeError(f"Unsupported event type: {type(event)!r}")

        failures: Dict[str, Exception] = {}
        for name, handler in self._handlers.items():
            try:
                handler.on_leases_changed(event)
            except NotifyFailure as exc:
                LOG.warning("notifying %s: %s", name, exc)
                failures[name] = exc
            except Exception as exc:
                LOG.exception("lease handler %s failed", name)
                failures[name] = exc
        return failures
