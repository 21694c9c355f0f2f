"""YAML configuration loader for the dhcp4d agent."""

from __future__ import annotations

import signal
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

DEFAULT_LEASES_PATH = Path("/perm/dhcp4d/leases.json")
DEFAULT_STATUS_PORT = 8067


@dataclass
class LeasesConfig:
    path: Path = DEFAULT_LEASES_PATH


@dataclass
class NotifyConfig:
    processes: Sequence[str] = ("/user/dnsd",)
    signal: signal.Signals = signal.SIGUSR1


@dataclass
class StatusConfig:
    port: int = DEFAULT_STATUS_PORT
    include_loopback: bool = True
    extra_addresses: Sequence[str] = field(default_factory=list)


@dataclass
class AgentConfig:
    leases: LeasesConfig = field(default_factory=LeasesConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    status: StatusConfig = field(default_factory=StatusConfig)
    allocator: Optional[str] = None


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def _parse_signal(value) -> signal.Signals:
    if isinstance(value, int):
        return signal.Signals(value)
    name = str(value).upper()
    if not name.startswith("SIG"):
        name = f"SIG{name}"
    try:
        return signal.Signals[name]
    except KeyError:
        raise ValueError(f"Unsupported signal '{value}'") from None


def _parse_list(section: dict, key: str, default: Iterable[str]) -> List[str]:
    values = section.get(key, list(default))
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, list):
        raise ValueError(f"'{key}' must be a list")
    return [str(v) for v in values]


def _parse_leases(section: dict) -> LeasesConfig:
    return LeasesConfig(path=Path(section.get("path", DEFAULT_LEASES_PATH)))


def _parse_notify(section: dict) -> NotifyConfig:
    return NotifyConfig(
        processes=tuple(_parse_list(section, "processes", NotifyConfig.processes)),
        signal=_parse_signal(section.get("signal", "SIGUSR1")),
    )


def _parse_status(section: dict) -> StatusConfig:
    port = int(section.get("port", DEFAULT_STATUS_PORT))
    if not 0 < port < 65536:
        raise ValueError(f"status port {port} out of range")
    return StatusConfig(
        port=port,
        include_loopback=bool(section.get("include_loopback", True)),
        extra_addresses=_parse_list(section, "extra_addresses", []),
    )


def parse_config(data) -> AgentConfig:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    allocator = data.get("allocator")
    if allocator is not None and ":" not in str(allocator):
        raise ValueError("'allocator' must look like 'package.module:factory'")

    return AgentConfig(
        leases=_parse_leases(_section(data, "leases")),
        notify=_parse_notify(_section(data, "notify")),
        status=_parse_status(_section(data, "status")),
        allocator=str(allocator) if allocator is not None else None,
    )


def load_config(path: Optional[Path]) -> AgentConfig:
    """Load ``path``; a missing file yields the built-in defaults."""

    if path is None or not Path(path).exists():
        return AgentConfig()
    return parse_config(yaml.safe_load(Path(path).read_text()))
