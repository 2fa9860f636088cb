from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from ..context import RunContext
from ..lib.archive import extract_tarball
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class RestoreEtcStep:
    """Extract the /etc archive over /etc.

    This overwrites configuration written by every earlier step (fstab,
    firewall persistence, units), so it must run last.
    """

    step_id = "90_restore_etc"
    destructive = True

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def locate(self, ctx: RunContext, record: AuditRecord) -> Optional[Path]:
        name = record.etc_backup
        if not name or name != os.path.basename(name):
            return None
        # Older documents keep the archive next to the JSON, not in the sidecar dir.
        for candidate in (ctx.sidecar_dir / name, ctx.audit_dir / name):
            if candidate.is_file():
                return candidate
        return None

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        if not self.enabled:
            logger.info("/etc restore disabled; skipping")
            return
        if not record.etc_backup:
            logger.info("No /etc backup recorded")
            return

        archive = self.locate(ctx, record)
        if archive is None:
            logger.warning("Skipping /etc restore: %s not found next to the audit document", record.etc_backup)
            return

        logger.warning("Extracting /etc backup from %s (CAUTION: this overwrites existing /etc files)", archive)
        extract_tarball(archive, ctx.host_root, preserve_owner=True, dry_run=ctx.dry_run)
