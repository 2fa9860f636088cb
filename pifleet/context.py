from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .lib.env import PATHS

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def make_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class RunContext:
    """Explicit locations for one audit, restore or bootstrap run.

    host_root is where host files are read and written ("/" on a live device).
    Paths stored in an audit record are always host-absolute ("/etc/fstab"),
    never prefixed with host_root.
    """

    output_dir: Path
    host_root: Path = Path(PATHS.host_root)
    sidecar_dir_name: str = PATHS.sidecar_dir_name
    audit_path: Optional[Path] = None
    timestamp: str = ""
    dry_run: bool = False

    def host_path(self, path: str) -> Path:
        return self.host_root / path.lstrip("/")

    @property
    def sidecar_dir(self) -> Path:
        # Sidecars live next to the audit document when one is known.
        base = self.audit_path.parent if self.audit_path is not None else self.output_dir
        return base / self.sidecar_dir_name

    @property
    def audit_dir(self) -> Path:
        return self.audit_path.parent if self.audit_path is not None else self.output_dir

    @property
    def default_audit_path(self) -> Path:
        return self.output_dir / f"{PATHS.audit_prefix}{self.timestamp}.json"

    @property
    def etc_tarball_name(self) -> str:
        return f"etc_backup_{self.timestamp}.tgz"
