"""Lease records and the helpers that operate on whole lease sets.

A :class:`Lease` binds an IPv4 address to a client.  Leases without an expiry
are *static*: they were configured by an administrator and never expire.
Whether a dynamic lease has expired is not stored anywhere; it is derived at
read time by comparing the expiry against the caller's notion of "now".

The JSON layout matches the lease files written by earlier versions of the
daemon, which encode static leases with the zero timestamp
``0001-01-01T00:00:00Z`` instead of ``null``.
"""

from __future__ import annotations

import ipaddress
import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Tuple

ZERO_TIMESTAMP = "0001-01-01T00:00:00Z"

_HEX_RE = re.compile(r"^[0-9a-f]+$")

_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})$"
)

LeaseSet = Tuple["Lease", ...]


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; ``None`` and the zero time map to ``None``."""

    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {value!r}")
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        raise ValueError(f"invalid timestamp {value!r}")

    # datetime only keeps microseconds; longer fractions are truncated.
    frac = (match.group("frac") or "")[:6].ljust(6, "0")
    tz = match.group("tz")
    if tz == "Z":
        tz = "+00:00"
    if match.group("base").startswith("0001-01-01T00:00:00") and int(frac) == 0:
        return None
    parsed = datetime.fromisoformat(f"{match.group('base')}.{frac}{tz}")
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        raise ValueError(f"timestamp {value!r} out of range") from None


def format_rfc3339(value: Optional[datetime]) -> str:
    if value is None:
        return ZERO_TIMESTAMP
    value = _as_utc(value)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    return text + "Z"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _normalise_hwaddr(value: str) -> str:
    octets = str(value).replace("-", ":").lower().split(":")
    if len(octets) != 6 or any(len(o) != 2 or not _HEX_RE.match(o) for o in octets):
        raise ValueError(f"invalid hardware address {value!r}")
    return ":".join(octets)


@dataclass(frozen=True)
class Lease:
    """One issued or reserved address binding.

    Attributes
    ----------
    num:
        Ordinal of the address within the pool.  Static leases are listed in
        ascending ``num`` order since they have no expiry to sort by.
    addr:
        The leased IPv4 address.
    hardware_addr:
        Client MAC address, lower-case and colon separated.
    hostname, hostname_override:
        Display names.  A non-empty override wins over the client supplied
        hostname.
    expiry:
        Absolute expiry time in UTC, or ``None`` for a static lease.
    last_ack:
        When the last DHCPACK for this lease was sent, if known.
    """

    num: int
    addr: ipaddress.IPv4Address
    hardware_addr: str
    hostname: str = ""
    hostname_override: str = ""
    expiry: Optional[datetime] = None
    last_ack: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "addr", ipaddress.IPv4Address(self.addr))
        object.__setattr__(self, "hardware_addr", _normalise_hwaddr(self.hardware_addr))
        if self.expiry is not None:
            object.__setattr__(self, "expiry", _as_utc(self.expiry))
        if self.last_ack is not None:
            object.__setattr__(self, "last_ack", _as_utc(self.last_ack))

    @property
    def static(self) -> bool:
        return self.expiry is None

    @property
    def display_name(self) -> str:
        return self.hostname_override or self.hostname

    def expired(self, now: datetime) -> bool:
        if self.expiry is None:
            return False
        return _as_utc(now) >= self.expiry

    def expired_for(self, now: datetime) -> Optional[timedelta]:
        """Return how long ago the lease expired, or ``None`` if it has not."""

        if not self.expired(now):
            return None
        return _as_utc(now) - self.expiry

    def to_dict(self) -> dict:
        return {
            "num": self.num,
            "addr": str(self.addr),
            "hardware_addr": self.hardware_addr,
            "hostname": self.hostname,
            "hostname_override": self.hostname_override,
            "expiry": format_rfc3339(self.expiry),
            "last_ack": format_rfc3339(self.last_ack),
        }

    @classmethod
    def from_dict(cls, entry: Any) -> "Lease":
        if not isinstance(entry, dict):
            raise ValueError(f"lease entry must be an object, got {type(entry).__name__}")
        try:
            num = entry["num"]
            addr = entry["addr"]
            hardware_addr = entry["hardware_addr"]
        except KeyError as exc:
            raise ValueError(f"lease entry missing {exc.args[0]!r}") from None
        if isinstance(num, bool) or not isinstance(num, int):
            raise ValueError(f"lease 'num' must be an integer, got {num!r}")
        return cls(
            num=num,
            addr=ipaddress.IPv4Address(addr),
            hardware_addr=hardware_addr,
            hostname=str(entry.get("hostname") or ""),
            hostname_override=str(entry.get("hostname_override") or ""),
            expiry=parse_timestamp(entry.get("expiry")),
            last_ack=parse_timestamp(entry.get("last_ack")),
        )


def dump_leases(leases: Iterable[Lease]) -> str:
    """Serialise ``leases`` into the tab-indented on-disk representation."""

    return json.dumps([lease.to_dict() for lease in leases], indent="\t") + "\n"


def parse_leases(text: str) -> LeaseSet:
    """Parse the on-disk representation, raising ``ValueError`` if malformed."""

    payload = json.loads(text)
    if payload is None:
        return ()
    if not isinstance(payload, list):
        raise ValueError("lease file must contain a JSON array")
    return tuple(Lease.from_dict(entry) for entry in payload)


def count_non_expired(leases: Iterable[Lease], now: datetime) -> int:
    return sum(1 for lease in leases if not lease.expired(now))


def partition_leases(leases: Iterable[Lease]) -> Tuple[List[Lease], List[Lease]]:
    """Split ``leases`` into display-ordered static and dynamic lists.

    Static leases are ordered by ascending ``num``.  Dynamic leases are
    ordered by descending expiry so the most recently handed out lease comes
    first and the one closest to expiring comes last.
    """

    static: List[Lease] = []
    dynamic: List[Lease] = []
    for lease in leases:
        (static if lease.static else dynamic).append(lease)
    static.sort(key=lambda lease: lease.num)
    dynamic.sort(key=lambda lease: lease.expiry, reverse=True)
    return static, dynamic


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def since(value: datetime, now: datetime) -> str:
    elapsed = _as_utc(now) - _as_utc(value)
    if elapsed > timedelta(hours=24):
        return format_timestamp(value)
    # whole seconds only
    return str(timedelta(seconds=int(elapsed.total_seconds())))

