from __future__ import annotations

import logging

from ..context import RunContext
from ..lib.accounts import ensure_user
from ..lib.command import CommandError
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class EnsureUsersStep:
    step_id = "20_ensure_users"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        for user in record.users:
            try:
                ensure_user(user.username, user.shell, dry_run=ctx.dry_run)
            except CommandError as e:
                logger.warning("Could not create user %s: %s", user.username, e)
