from __future__ import annotations

import logging

from ..context import RunContext
from ..lib.accounts import install_crontab
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class InstallCrontabsStep:
    step_id = "40_install_crontabs"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        for user in record.users:
            if not user.crontab.strip():
                continue
            if install_crontab(user.username, user.crontab, dry_run=ctx.dry_run):
                logger.info("Installed crontab for %s", user.username)
