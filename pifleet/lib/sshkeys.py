from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from ..record import KeyRecord
from .command import run_cmd

logger = logging.getLogger(__name__)

HOST_KEY_GLOB = "ssh_host_*_key"


def collect_host_keys(ssh_dir: Path) -> List[KeyRecord]:
    if not ssh_dir.is_dir():
        logger.warning("%s missing; no SSH host keys recorded", ssh_dir)
        return []
    return [KeyRecord.from_file(p) for p in sorted(ssh_dir.glob(HOST_KEY_GLOB)) if p.is_file()]


def write_host_key(ssh_dir: Path, key: KeyRecord, *, dry_run: bool = False) -> Path:
    """Write a key back byte for byte with its recorded permission bits."""

    if not key.file or key.file != os.path.basename(key.file) or key.file in {".", ".."}:
        raise ValueError(f"Refusing host key with non-basename file: {key.file!r}")

    path = ssh_dir / key.file
    if dry_run:
        logger.info("Would write %s (mode %s)", path, key.mode)
        return path

    ssh_dir.mkdir(parents=True, exist_ok=True)
    path.write_bytes(key.decode())
    os.chmod(path, key.mode_bits)
    return path


def restart_ssh(*, dry_run: bool = False) -> bool:
    # Debian names the unit ssh, other distros sshd.
    for unit in ("ssh", "sshd"):
        if run_cmd(["systemctl", "restart", unit], check=False, dry_run=dry_run).ok:
            logger.info("Restarted %s", unit)
            return True
    logger.warning("Could not restart ssh or sshd")
    return False
