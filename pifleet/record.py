"""Audit record data model.

The JSON layout (snake_case keys, filename-only sidecar references) is shared
with audit documents produced by the original shell tooling, so those remain
restorable.
"""

from __future__ import annotations

import base64
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

FIREWALL_TOOLS = ("nft", "iptables")

DEFAULT_REMARKS: Tuple[str, ...] = (
    "This audit covers APT packages only. Snap, Flatpak, pip, or other user-installed applications are NOT included.",
    "Certificates (TLS, etc) are not backed up.",
    "User backup tarballs are referenced by filename only; expected to be in the sidecar directory next to this JSON.",
    "Custom systemd units are recorded by path only; restoring them requires the original files to be reachable.",
)


@dataclass(frozen=True)
class PackageRecord:
    name: str
    version: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "version": self.version}

    @classmethod
    def from_obj(cls, obj: Any) -> "PackageRecord":
        # Legacy documents store "<name> <version>" strings.
        if isinstance(obj, str):
            name, _, version = obj.strip().partition(" ")
            return cls(name=name, version=version.strip())
        if isinstance(obj, Mapping):
            return cls(name=str(obj["name"]), version=str(obj.get("version") or ""))
        raise ValueError(f"Unsupported package entry: {obj!r}")


@dataclass(frozen=True)
class KeyRecord:
    file: str
    mode: str
    base64: str

    @classmethod
    def from_file(cls, path: Path) -> "KeyRecord":
        data = path.read_bytes()
        mode = path.stat().st_mode & 0o7777
        return cls(
            file=path.name,
            mode=format(mode, "o"),
            base64=base64.b64encode(data).decode("ascii"),
        )

    def decode(self) -> bytes:
        return base64.b64decode(self.base64)

    @property
    def mode_bits(self) -> int:
        return int(self.mode, 8)

    def to_dict(self) -> Dict[str, str]:
        return {"file": self.file, "mode": self.mode, "base64": self.base64}

    @classmethod
    def from_obj(cls, obj: Mapping[str, Any]) -> "KeyRecord":
        return cls(file=str(obj["file"]), mode=str(obj["mode"]), base64=str(obj["base64"]))


@dataclass(frozen=True)
class UserRecord:
    username: str
    home: str
    shell: str
    dotfiles: Tuple[str, ...] = ()
    ssh_paths: Tuple[str, ...] = ()
    config_paths: Tuple[str, ...] = ()
    crontab: str = ""
    tarball: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "home": self.home,
            "shell": self.shell,
            "dotfiles": list(self.dotfiles),
            "ssh_paths": list(self.ssh_paths),
            "config_paths": list(self.config_paths),
            "crontab": self.crontab,
            "tarball": self.tarball,
        }

    @classmethod
    def from_obj(cls, obj: Mapping[str, Any]) -> "UserRecord":
        return cls(
            username=str(obj["username"]),
            home=str(obj.get("home") or f"/home/{obj['username']}"),
            shell=str(obj.get("shell") or "/bin/bash"),
            dotfiles=_str_tuple(obj.get("dotfiles")),
            ssh_paths=_str_tuple(obj.get("ssh_paths")),
            config_paths=_str_tuple(obj.get("config_paths")),
            crontab=str(obj.get("crontab") or ""),
            tarball=str(obj.get("tarball") or ""),
        )


@dataclass(frozen=True)
class AuditRecord:
    packages: Tuple[PackageRecord, ...] = ()
    enabled_services: Tuple[str, ...] = ()
    running_services: Tuple[str, ...] = ()
    custom_systemd_units: Tuple[str, ...] = ()
    users: Tuple[UserRecord, ...] = ()
    zerotier_networks: Tuple[str, ...] = ()
    fstab: Tuple[str, ...] = ()
    nfs_exports: Tuple[str, ...] = ()
    remote_mounts: Tuple[str, ...] = ()
    mnt_dirs: Tuple[str, ...] = ()
    mnt_mountpoints: Tuple[str, ...] = ()
    firewall: Dict[str, str] = field(default_factory=dict)
    ssh_host_keys: Tuple[KeyRecord, ...] = ()
    etc_backup: str = ""
    etc_diff: Tuple[str, ...] = ()
    remarks: Tuple[str, ...] = DEFAULT_REMARKS
    created_at: str = ""
    timestamp: str = ""
    hostname: str = ""

    @property
    def package_names(self) -> List[str]:
        return [p.name for p in self.packages]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packages": [p.to_dict() for p in self.packages],
            "enabled_services": list(self.enabled_services),
            "running_services": list(self.running_services),
            "custom_systemd_units": list(self.custom_systemd_units),
            "users": [u.to_dict() for u in self.users],
            "zerotier_networks": list(self.zerotier_networks),
            "fstab": list(self.fstab),
            "nfs_exports": list(self.nfs_exports),
            "remote_mounts": list(self.remote_mounts),
            "mnt_dirs": list(self.mnt_dirs),
            "mnt_mountpoints": list(self.mnt_mountpoints),
            "firewall": {k: v for k, v in self.firewall.items() if k in FIREWALL_TOOLS},
            "ssh_host_keys": [k.to_dict() for k in self.ssh_host_keys],
            "etc_backup": self.etc_backup,
            "etc_diff": list(self.etc_diff),
            "remarks": list(self.remarks),
            "created_at": self.created_at,
            "timestamp": self.timestamp,
            "hostname": self.hostname,
        }

    @classmethod
    def from_obj(cls, obj: Mapping[str, Any]) -> "AuditRecord":
        firewall = obj.get("firewall") or {}
        if not isinstance(firewall, Mapping):
            raise ValueError("firewall must be a mapping of tool name to ruleset text")
        return cls(
            packages=tuple(PackageRecord.from_obj(p) for p in obj.get("packages") or []),
            enabled_services=_str_tuple(obj.get("enabled_services")),
            running_services=_str_tuple(obj.get("running_services")),
            custom_systemd_units=_str_tuple(obj.get("custom_systemd_units")),
            users=tuple(UserRecord.from_obj(u) for u in obj.get("users") or []),
            zerotier_networks=_str_tuple(obj.get("zerotier_networks")),
            fstab=_str_tuple(obj.get("fstab")),
            nfs_exports=_str_tuple(obj.get("nfs_exports")),
            remote_mounts=_str_tuple(obj.get("remote_mounts")),
            mnt_dirs=_str_tuple(obj.get("mnt_dirs")),
            mnt_mountpoints=_str_tuple(obj.get("mnt_mountpoints")),
            firewall={str(k): str(v) for k, v in firewall.items() if v and k in FIREWALL_TOOLS},
            ssh_host_keys=tuple(KeyRecord.from_obj(k) for k in obj.get("ssh_host_keys") or []),
            etc_backup=str(obj.get("etc_backup") or ""),
            etc_diff=_str_tuple(obj.get("etc_diff")),
            remarks=_str_tuple(obj.get("remarks")) or DEFAULT_REMARKS,
            created_at=str(obj.get("created_at") or ""),
            timestamp=str(obj.get("timestamp") or ""),
            hostname=str(obj.get("hostname") or ""),
        )


def _str_tuple(value: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    return tuple(str(v) for v in (value or []))


def normalize_packages(packages: Iterable[PackageRecord]) -> Tuple[PackageRecord, ...]:
    """Sort by name and drop duplicate names (first occurrence wins)."""

    seen: Dict[str, PackageRecord] = {}
    for p in packages:
        if p.name and p.name not in seen:
            seen[p.name] = p
    return tuple(seen[name] for name in sorted(seen))


def dumps_record(record: AuditRecord) -> str:
    return json.dumps(record.to_dict(), indent=2, sort_keys=True) + "\n"


def load_record(path: str | Path) -> AuditRecord:
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Audit document must be an object/dict, got {type(data)}")
    return AuditRecord.from_obj(data)


def save_record(path: str | Path, record: AuditRecord) -> Path:
    """Write the audit document atomically with mode 600."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(p.name + ".tmp")
    tmp.write_text(dumps_record(record), encoding="utf-8")
    os.chmod(tmp, 0o600)
    os.replace(tmp, p)
    logger.info("Audit saved to %s", p)
    return p
