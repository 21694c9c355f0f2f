import signal
from pathlib import Path

import pytest

from dhcp4d_agent.config import DEFAULT_LEASES_PATH, load_config, parse_config


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(
        """
leases:
  path: /var/lib/dhcp4d/leases.json
notify:
  processes:
    - /user/dnsd
    - /user/radvd
  signal: hup
status:
  port: 8080
  include_loopback: false
  extra_addresses:
    - 2001:db8::1
allocator: example.allocator:build
"""
    )

    cfg = load_config(config_path)

    assert cfg.leases.path == Path("/var/lib/dhcp4d/leases.json")
    assert list(cfg.notify.processes) == ["/user/dnsd", "/user/radvd"]
    assert cfg.notify.signal is signal.SIGHUP
    assert cfg.status.port == 8080
    assert cfg.status.include_loopback is False
    assert list(cfg.status.extra_addresses) == ["2001:db8::1"]
    assert cfg.allocator == "example.allocator:build"


def test_missing_config_uses_defaults(tmp_path: Path):
    cfg = load_config(tmp_path / "absent.yaml")

    assert cfg.leases.path == DEFAULT_LEASES_PATH
    assert list(cfg.notify.processes) == ["/user/dnsd"]
    assert cfg.notify.signal is signal.SIGUSR1
    assert cfg.status.port == 8067
    assert cfg.allocator is None


def test_empty_sections_use_defaults():
    cfg = parse_config({"leases": None, "status": {}})

    assert cfg.leases.path == DEFAULT_LEASES_PATH
    assert cfg.status.include_loopback is True


@pytest.mark.parametrize(
    "data",
    [
        ["not", "a", "mapping"],
        {"leases": ["path"]},
        {"notify": {"signal": "SIGNOPE"}},
        {"notify": {"processes": {"dnsd": True}}},
        {"status": {"port": 70000}},
        {"allocator": "no_factory_given"},
    ],
)
def test_invalid_config_is_rejected(data):
    with pytest.raises(ValueError):
        parse_config(data)
