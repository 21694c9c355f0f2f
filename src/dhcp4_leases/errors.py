"""Exception hierarchy for the lease state runtime."""

from __future__ import annotations


class LeaseStateError(Exception):
    """Base class for errors raised by the lease state runtime."""


class CorruptState(LeaseStateError):
    """The durable lease snapshot exists but cannot be parsed."""

    def __init__(self, path, cause: Exception) -> None:
        super().__init__(f"corrupt lease file {path}: {cause}")
        self.path = path
        self.cause = cause


class PersistFailure(LeaseStateError):
    """Writing or renaming the durable lease snapshot failed."""

    def __init__(self, path, cause: Exception) -> None:
        super().__init__(f"persisting leases to {path}: {cause}")
        self.path = path
        self.cause = cause


class NotifyFailure(LeaseStateError):
    """A downstream consumer could not be told about a lease change."""


class BindFailure(LeaseStateError):
    """A listener could not be started on ``address``."""

    def __init__(self, address: str, cause: Exception) -> None:
        super().__init__(f"listening on {address}: {cause}")
        self.address = address
        self.cause = cause


class StopFailure(LeaseStateError):
    """A listener on ``address`` could not be released cleanly."""

    def __init__(self, address: str, cause: Exception) -> None:
        super().__init__(f"closing listener on {address}: {cause}")
        self.address = address
        self.cause = cause
