from __future__ import annotations

import logging

from ..context import RunContext
from ..lib.systemd import systemctl
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class EnableServicesStep:
    step_id = "60_enable_services"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        # Unknown or masked units fail individually; that is expected on a fresh image.
        enabled = sum(systemctl("enable", u, dry_run=ctx.dry_run) for u in record.enabled_services)
        started = sum(systemctl("start", u, dry_run=ctx.dry_run) for u in record.running_services)
        logger.info(
            "Enabled %d/%d and started %d/%d service(s)",
            enabled,
            len(record.enabled_services),
            started,
            len(record.running_services),
        )
