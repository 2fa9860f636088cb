from __future__ import annotations

import logging
import os

from ..context import RunContext
from ..lib.accounts import chown_tree
from ..lib.archive import extract_tarball
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class RestoreHomeFilesStep:
    step_id = "30_restore_home_files"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        for user in record.users:
            if not user.tarball:
                logger.info("No tarball recorded for %s", user.username)
                continue

            # The record stores a filename; anything else is not ours to resolve.
            if user.tarball != os.path.basename(user.tarball):
                logger.warning(
                    "Skipping home restore for %s: tarball %r is not a bare filename", user.username, user.tarball
                )
                continue

            tarball = ctx.sidecar_dir / user.tarball
            if not tarball.is_file():
                logger.warning("Skipping home restore for %s: tarball %s not found", user.username, tarball)
                continue

            home = ctx.host_path(user.home)
            try:
                extract_tarball(tarball, home, dry_run=ctx.dry_run)
            except Exception as e:
                logger.warning("Skipping home restore for %s: cannot extract %s (%s)", user.username, tarball, e)
                continue
            chown_tree(user.username, str(home), dry_run=ctx.dry_run)
            logger.info("Restored home files for %s", user.username)
