from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .lib.env import PATHS

VNC_PASSWORD_ENV = "PIFLEET_VNC_PASSWORD"
VNC_PLACEHOLDER = "CHANGE_ME"

DEFAULT_BASE_PACKAGES = [
    "sudo",
    "openssh-server",
    "cron",
    "curl",
    "wget",
    "vim",
    "git",
    "htop",
    "unattended-upgrades",
    "wayvnc",
]

DEFAULT_REBOOT_SCHEDULE = "0 3 5 * *"


@dataclass(frozen=True)
class FleetConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.raw.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"config section {name!r} must be a mapping")
        return section

    @property
    def sidecar_dir_name(self) -> str:
        return str(self._section("paths").get("sidecar_dir") or PATHS.sidecar_dir_name)

    @property
    def audit_log(self) -> str:
        return str(self._section("paths").get("audit_log") or PATHS.audit_log)

    @property
    def bootstrap_log(self) -> str:
        return str(self._section("paths").get("bootstrap_log") or PATHS.bootstrap_log)

    @property
    def restore_etc_backup(self) -> bool:
        return bool(self._section("restore").get("etc_backup", True))

    @property
    def base_packages(self) -> List[str]:
        pkgs = self._section("bootstrap").get("packages")
        if pkgs is None:
            return list(DEFAULT_BASE_PACKAGES)
        if not isinstance(pkgs, list):
            raise ConfigError("bootstrap.packages must be a list")
        return [str(p).strip() for p in pkgs if str(p).strip()]

    @property
    def zerotier_networks(self) -> List[str]:
        nets = self._section("zerotier").get("networks") or []
        if not isinstance(nets, list):
            raise ConfigError("zerotier.networks must be a list")
        return [str(n).strip() for n in nets if str(n).strip()]

    @property
    def vnc_address(self) -> str:
        return str(self._section("vnc").get("address") or "0.0.0.0")

    @property
    def vnc_port(self) -> int:
        return int(self._section("vnc").get("port") or 5900)

    @property
    def vnc_password(self) -> Optional[str]:
        env = os.environ.get(VNC_PASSWORD_ENV)
        if env:
            return env
        pw = self._section("vnc").get("password")
        return str(pw) if pw else None

    @property
    def reboot_schedule(self) -> str:
        return str(self._section("bootstrap").get("reboot_schedule") or DEFAULT_REBOOT_SCHEDULE)

    @property
    def automatic_reboot_time(self) -> str:
        return str(self._section("bootstrap").get("automatic_reboot_time") or "02:00")


def load_config(path: Optional[str]) -> FleetConfig:
    """Load the optional YAML config; no path means built-in defaults."""

    if not path:
        return FleetConfig()

    p = Path(path)
    if not p.exists():
        raise ConfigError(f"config file not found: {path}")
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("config must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError("config must contain a mapping/object")

    return FleetConfig(raw=raw)
