"""Read-only HTTP view of the current lease set."""

from __future__ import annotations

import ipaddress
from datetime import datetime, timezone
from typing import Callable

from flask import Flask, Response, abort, jsonify, request
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from dhcp4_leases import Lease, LeaseStore
from dhcp4_leases.lease import format_timestamp, partition_leases, since

from .addresses import is_private


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _client_address() -> str:
    remote = request.remote_addr
    try:
        ip = ipaddress.ip_address((remote or "").split("%", 1)[0])
    except ValueError:
        abort(400, "bad request")
    forwarded = request.headers.get("X-Forwarded-For", "")
    if ip.is_loopback and forwarded:
        return forwarded.split(",", 1)[0].strip()
    return str(ip)


def lease_row(lease: Lease, now: datetime) -> dict:
    expired = lease.expired(now)
    row = {
        "num": lease.num,
        "addr": str(lease.addr),
        "hostname": lease.hostname,
        "hostname_override": lease.hostname_override,
        "display_name": lease.display_name,
        "hardware_addr": lease.hardware_addr,
        "expiry": format_timestamp(lease.expiry) if lease.expiry else None,
        "static": lease.static,
        "expired": expired,
    }
    if expired:
        row["since"] = since(lease.expiry, now)
    return row


def create_app(
    store: LeaseStore,
    metrics_registry: CollectorRegistry,
    *,
    clock: Callable[[], datetime] = _utcnow,
) -> Flask:
    """Create the status application bound to ``store``."""

    app = Flask(__name__)

    @app.get("/")
    def leases():
        client = _client_address()
        try:
            allowed = is_private(client)
        except ValueError:
            allowed = False
        if not allowed:
            abort(403, f"access from {client} forbidden")

        now = clock()
        static, dynamic = partition_leases(store.snapshot())
        return jsonify(
            static=[lease_row(lease, now) for lease in static],
            dynamic=[lease_row(lease, now) for lease in dynamic],
        )

    @app.get("/metrics")
    def metrics():
        data = generate_latest(metrics_registry)
        return Response(data, content_type=CONTENT_TYPE_LATEST)

    return app


__all__ = ["create_app", "lease_row"]
