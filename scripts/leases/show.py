#!/usr/bin/env python3
"""Print a dhcp4d lease file in status page order."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from dhcp4_leases import CorruptState, Lease, LeaseStore  # noqa: E402
from dhcp4_leases.lease import (  # noqa: E402
    count_non_expired,
    format_timestamp,
    partition_leases,
    since,
)


LOG = logging.getLogger(__name__)

COLUMNS = ("IP address", "Hostname", "MAC address", "Expiry")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--leases",
        type=Path,
        default=Path("/perm/dhcp4d/leases.json"),
        help="Path to the lease file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def _expiry_column(lease: Lease, now: datetime) -> str:
    if lease.expired(now):
        return f"{since(lease.expiry, now)} expired"
    if lease.static:
        return "static"
    return f"{format_timestamp(lease.expiry)} active"


def render_rows(leases: Iterable[Lease], now: datetime) -> List[List[str]]:
    rows = []
    for lease in leases:
        name = lease.display_name
        if lease.hostname_override:
            name += " (!)"
        rows.append([str(lease.addr), name, lease.hardware_addr, _expiry_column(lease, now)])
    return rows


def render_table(rows: List[List[str]]) -> str:
    widths = [len(c) for c in COLUMNS]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    lines = ["  ".join(c.ljust(w) for c, w in zip(COLUMNS, widths))]
    for row in rows:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(row, widths)))
    return "\n".join(line.rstrip() for line in lines)


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        leases = LeaseStore(args.leases).load()
    except CorruptState as exc:
        LOG.error("%s", exc)
        return 1

    now = datetime.now(timezone.utc)
    static, dynamic = partition_leases(leases)
    print(render_table(render_rows([*static, *dynamic], now)))
    print(f"\n{count_non_expired(leases, now)} of {len(leases)} leases not expired")
    return 0


if __name__ == "__main__":
    sys.exit(main())
