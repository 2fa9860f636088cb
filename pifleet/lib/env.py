from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from ..errors import PrivilegeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Paths:
    host_root: str = "/"
    sidecar_dir_name: str = "gesser_user_backups"
    audit_prefix: str = "system_audit_"
    audit_log: str = "audit.log"
    bootstrap_log: str = "bootstrap.log"
    restore_log_prefix: str = "re-install_"
    systemd_system_dir: str = "/etc/systemd/system"
    ssh_dir: str = "/etc/ssh"


PATHS = Paths()


def require_root(*, dry_run: bool = False) -> None:
    """Fail fast unless running with an effective UID of 0."""

    if dry_run:
        logger.info("Dry run: skipping root privilege check")
        return
    if os.geteuid() != 0:
        raise PrivilegeError("Run as root (sudo)")
    logger.info("Root privileges confirmed")
