"""Listen on a changing set of addresses without disturbing existing ones."""

from .http import WSGIListener  # noqa: F401
from .pool import (  # noqa: F401
    EndpointState,
    Listener,
    ListenerPool,
    ReconcileResult,
)

__all__ = [
    "EndpointState",
    "Listener",
    "ListenerPool",
    "ReconcileResult",
    "WSGIListener",
]
