from __future__ import annotations

import logging

from ..context import RunContext
from ..lib.pkg import apt_has_package, apt_install, apt_update
from ..record import AuditRecord

logger = logging.getLogger(__name__)


class InstallPackagesStep:
    """Install every recorded package by name.

    Versions are informational only: a years-old pin is rarely still in the
    archive, so the current candidate is installed instead.
    """

    step_id = "10_install_packages"
    destructive = False

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        names = record.package_names
        if not names:
            logger.info("No packages recorded")
            return

        apt_update(dry_run=ctx.dry_run)
        if apt_install(names, dry_run=ctx.dry_run):
            logger.info("Installed %d package(s)", len(names))
            return

        # One unknown name fails the whole batch; retry with what apt knows about.
        available = [n for n in names if apt_has_package(n, dry_run=ctx.dry_run)]
        missing = [n for n in names if n not in set(available)]
        if missing:
            logger.warning("Packages not available on this system: %s", " ".join(missing))
        if available and not apt_install(available, dry_run=ctx.dry_run):
            logger.error("Package install failed; see apt output above")
            return
        logger.info("Installed %d of %d package(s)", len(available), len(names))
