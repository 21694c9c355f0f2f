"""Derive the set of local addresses the status listeners should bind."""

from __future__ import annotations

import ipaddress
import logging
from typing import FrozenSet, Iterable, Sequence

import pyroute2

LOG = logging.getLogger(__name__)

AddressSet = FrozenSet[str]


PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(n)
    for n in (
        "127.0.0.0/8",
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "100.64.0.0/10",
        "169.254.0.0/16",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)


def is_private(address: str) -> bool:
    ip = ipaddress.ip_address(address.split("%", 1)[0])
    return any(ip in net for net in PRIVATE_NETWORKS if net.version == ip.version)


class InterfaceAddressSource:
    """Enumerate private addresses configured on local interfaces.

    Addresses come from netlink (``RTM_GETADDR``).  IPv6 link-local
    addresses are skipped because they cannot be bound without a zone.
    ``extra`` addresses are always included, e.g. a routed IPv6 address that
    is not in a private range.
    """

    def __init__(self, extra: Sequence[str] = (), *, include_loopback: bool = True) -> None:
        self._extra = [str(ipaddress.ip_address(a)) for a in extra]
        self._include_loopback = include_loopback

    def _interface_addresses(self) -> Iterable[str]:
        with pyroute2.IPRoute() as ipr:
            for msg in ipr.get_addr():
                address = msg.get_attr("IFA_ADDRESS")
                if address:
                    yield address

    def __call__(self) -> AddressSet:
        hosts = set()
        for address in self._interface_addresses():
            try:
                ip = ipaddress.ip_address(address)
            except ValueError:
                LOG.debug("ignoring unparseable interface address %r", address)
                continue
            if ip.version == 6 and ip.is_link_local:
                continue
            if ip.is_loopback and not self._include_loopback:
                continue
            if is_private(str(ip)):
                hosts.add(str(ip))
        hosts.update(self._extra)
        LOG.debug("local listen addresses: %s", sorted(hosts))
        return frozenset(hosts)
