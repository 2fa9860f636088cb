from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

from .command import run_cmd

logger = logging.getLogger(__name__)

REMOTE_FS_RE = re.compile(r" type (nfs4?|cifs|sshfs|fuse\.sshfs) ")


def remote_mounts() -> List[str]:
    r = run_cmd(["mount"], check=False)
    if not r.ok:
        logger.warning("mount failed (%s): %s; no remote mounts recorded", r.returncode, r.stderr.strip())
        return []
    return [line.strip() for line in r.stdout.splitlines() if REMOTE_FS_RE.search(line)]


def mnt_entries(mnt_dir: Path) -> List[str]:
    if not mnt_dir.is_dir():
        return []
    return sorted(p.name for p in mnt_dir.iterdir())


def mnt_mountpoints() -> List[str]:
    r = run_cmd(["findmnt", "-rn", "-o", "TARGET"], check=False)
    if not r.ok:
        logger.warning("findmnt failed (%s): %s; no /mnt mountpoints recorded", r.returncode, r.stderr.strip())
        return []
    return [t.strip() for t in r.stdout.splitlines() if t.strip().startswith("/mnt")]
