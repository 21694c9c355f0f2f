from datetime import datetime, timedelta, timezone
from ipaddress import IPv4Address

import pytest

from dhcp4_leases.lease import (
    Lease,
    count_non_expired,
    dump_leases,
    parse_leases,
    parse_timestamp,
    partition_leases,
    since,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def make_lease(num: int, expiry=None, **kwargs) -> Lease:
    return Lease(
        num=num,
        addr=f"192.168.42.{num + 10}",
        hardware_addr=kwargs.pop("hardware_addr", f"02:00:00:00:00:{num:02x}"),
        hostname=kwargs.pop("hostname", f"host{num}"),
        expiry=expiry,
        **kwargs,
    )


def test_lease_expiring_in_an_hour_is_not_expired():
    lease = make_lease(1, expiry=NOW + timedelta(hours=1))

    assert lease.expired(NOW) is False
    assert lease.expired_for(NOW) is None


def test_lease_reports_elapsed_time_once_expired():
    lease = make_lease(1, expiry=NOW + timedelta(hours=1))
    later = NOW + timedelta(hours=1, minutes=5)

    assert lease.expired(later) is True
    assert lease.expired_for(later) == timedelta(minutes=5)
    assert since(lease.expiry, later) == "0:05:00"


def test_lease_expires_exactly_at_expiry():
    lease = make_lease(1, expiry=NOW)

    assert lease.expired(NOW) is True


def test_static_lease_never_expires():
    lease = make_lease(1)

    assert lease.static is True
    assert lease.expired(NOW + timedelta(days=3650)) is False


def test_since_falls_back_to_timestamp_after_a_day():
    expiry = NOW - timedelta(days=2)

    assert since(expiry, NOW) == "2026-10-16 12:00"


def test_hostname_override_takes_precedence():
    lease = make_lease(1, hostname="android-1234", hostname_override="phone")

    assert lease.display_name == "phone"
    assert make_lease(2, hostname="laptop").display_name == "laptop"


def test_hardware_address_is_normalised():
    lease = make_lease(1, hardware_addr="AA-BB-CC-DD-EE-FF")

    assert lease.hardware_addr == "aa:bb:cc:dd:ee:ff"
    with pytest.raises(ValueError):
        make_lease(2, hardware_addr="aa:bb:cc")


def test_static_leases_sort_by_num():
    leases = [make_lease(2), make_lease(1)]

    static, dynamic = partition_leases(leases)

    assert [lease.num for lease in static] == [1, 2]
    assert dynamic == []


def test_dynamic_leases_sort_by_descending_expiry():
    t1 = NOW + timedelta(minutes=10)
    t2 = NOW + timedelta(minutes=20)
    soon = make_lease(3, expiry=t1)
    later = make_lease(4, expiry=t2)

    static, dynamic = partition_leases([soon, make_lease(1), later])

    assert [lease.num for lease in static] == [1]
    assert dynamic == [later, soon]


def test_count_non_expired():
    leases = [
        make_lease(1),
        make_lease(2, expiry=NOW + timedelta(hours=1)),
        make_lease(3, expiry=NOW - timedelta(seconds=1)),
    ]

    assert count_non_expired(leases, NOW) == 2
    assert count_non_expired([], NOW) == 0


def test_dump_and_parse_round_trip():
    leases = (
        make_lease(1, hostname_override="printer"),
        make_lease(2, expiry=NOW + timedelta(hours=2), last_ack=NOW),
    )

    text = dump_leases(leases)

    assert "\t" in text
    assert '"expiry": "0001-01-01T00:00:00Z"' in text
    assert parse_leases(text) == leases


def test_parse_accepts_existing_lease_files():
    text = """[
	{
		"num": 7,
		"addr": "10.0.0.17",
		"hardware_addr": "00:11:22:33:44:55",
		"hostname": "xps",
		"hostname_override": "",
		"expiry": "2018-06-03T21:56:07.123456789+02:00",
		"last_ack": "0001-01-01T00:00:00Z"
	}
]"""

    (lease,) = parse_leases(text)

    assert lease.addr == IPv4Address("10.0.0.17")
    assert lease.expiry == datetime(2018, 6, 3, 19, 56, 7, 123456, tzinfo=timezone.utc)
    assert lease.last_ack is None


def test_parse_null_document_is_empty():
    assert parse_leases("null") == ()


@pytest.mark.parametrize(
    "text",
    [
        "{}",
        '[{"num": 1}]',
        '[{"num": "1", "addr": "10.0.0.1", "hardware_addr": "00:11:22:33:44:55"}]',
        '[{"num": 1, "addr": "fe80::1", "hardware_addr": "00:11:22:33:44:55"}]',
        '[{"num": 1, "addr": "10.0.0.1", "hardware_addr": "00:11:22:33:44:55",'
        ' "expiry": "0001-01-01T00:30:00+01:00"}]',
        '[{"num": 1, "addr": "10.0.0.1", "hardware_addr": "00:11:22:33:44:55",'
        ' "expiry": "9999-12-31T23:59:59-01:00"}]',
    ],
)
def test_parse_rejects_malformed_content(text):
    with pytest.raises(ValueError):
        parse_leases(text)


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")
