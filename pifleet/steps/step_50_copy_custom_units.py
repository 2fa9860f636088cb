from __future__ import annotations

import logging
from pathlib import Path

from ..context import RunContext
from ..lib.env import PATHS
from ..lib.files import copy_file
from ..lib.systemd import daemon_reload
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class CopyCustomUnitsStep:
    """Copy recorded unit files into the system unit directory.

    The record holds paths, not content, so this only does something when the
    source files are reachable (in-place restore or original filesystem mounted).
    """

    step_id = "50_copy_custom_units"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        unit_dir = ctx.host_path(PATHS.systemd_system_dir)
        copied = 0
        for unit in record.custom_systemd_units:
            src = ctx.host_path(unit)
            if not src.is_file():
                logger.warning("Skipping custom unit %s: source file not found", unit)
                continue
            if copy_file(src, unit_dir / Path(unit).name, mode=0o644, dry_run=ctx.dry_run):
                copied += 1

        if copied:
            daemon_reload(dry_run=ctx.dry_run)
        logger.info("Copied %d custom unit(s)", copied)
