from __future__ import annotations

import logging

from ..context import RunContext
from ..lib.env import PATHS
from ..lib.sshkeys import restart_ssh, write_host_key
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class RestoreSshHostKeysStep:
    step_id = "85_restore_ssh_host_keys"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        if not record.ssh_host_keys:
            logger.info("No SSH host keys recorded")
            return

        ssh_dir = ctx.host_path(PATHS.ssh_dir)
        written = 0
        for key in record.ssh_host_keys:
            try:
                write_host_key(ssh_dir, key, dry_run=ctx.dry_run)
                written += 1
            except (ValueError, OSError) as e:
                logger.warning("Skipping SSH host key %s: %s", key.file, e)

        logger.info("Restored %d SSH host key(s)", written)
        if written:
            restart_ssh(dry_run=ctx.dry_run)
