from __future__ import annotations

import logging

from ..context import RunContext
from ..lib.firewall import apply_ruleset
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class ApplyFirewallStep:
    step_id = "80_apply_firewall"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        if not record.firewall:
            logger.info("No firewall rulesets recorded")
            return
        for key, ruleset in sorted(record.firewall.items()):
            if apply_ruleset(key, ruleset, dry_run=ctx.dry_run):
                logger.info("Applied %s ruleset", key)
