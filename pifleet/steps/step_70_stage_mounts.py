from __future__ import annotations

import logging
import os

from ..context import RunContext
from ..lib.files import write_file
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class StageMountsStep:
    """Rewrite fstab/exports and create /mnt directories.

    Nothing is mounted here; activation happens on the next boot.
    """

    step_id = "70_stage_mounts"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        if record.fstab:
            write_file(ctx.host_path("/etc/fstab"), "\n".join(record.fstab) + "\n", dry_run=ctx.dry_run)
        if record.nfs_exports:
            write_file(ctx.host_path("/etc/exports"), "\n".join(record.nfs_exports) + "\n", dry_run=ctx.dry_run)

        mnt = ctx.host_path("/mnt")
        for name in record.mnt_dirs:
            if not name or name != os.path.basename(name) or name in {".", ".."}:
                logger.warning("Skipping /mnt entry %r: not a plain directory name", name)
                continue
            if ctx.dry_run:
                logger.info("Would create %s", mnt / name)
                continue
            (mnt / name).mkdir(parents=True, exist_ok=True)

        if record.remote_mounts:
            logger.info(
                "%d remote mount(s) were active at audit time; fstab entries will mount them on boot",
                len(record.remote_mounts),
            )
