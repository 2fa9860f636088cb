from __future__ import annotations

import logging
from typing import List

from .command import have_cmd, run_cmd

logger = logging.getLogger(__name__)

INSTALL_URL = "https://install.zerotier.com"


def list_networks() -> List[str]:
    """Raw `zerotier-cli listnetworks` rows without the header line."""

    if not have_cmd("zerotier-cli"):
        logger.info("zerotier-cli not installed; no networks recorded")
        return []
    r = run_cmd(["zerotier-cli", "listnetworks"], check=False)
    if not r.ok:
        logger.warning("zerotier-cli listnetworks failed (%s)", r.returncode)
        return []
    lines = [line.strip() for line in r.stdout.splitlines() if line.strip()]
    return lines[1:]


def install(*, dry_run: bool = False) -> bool:
    if have_cmd("zerotier-cli"):
        logger.info("ZeroTier already installed")
        return True
    r = run_cmd(["bash", "-c", f"curl -fsSL {INSTALL_URL} | bash"], check=False, dry_run=dry_run)
    if not r.ok:
        logger.warning("ZeroTier install failed (%s)", r.returncode)
    return r.ok


def join(network_id: str, *, dry_run: bool = False) -> bool:
    r = run_cmd(["zerotier-cli", "join", network_id], check=False, dry_run=dry_run)
    if not r.ok:
        logger.warning("zerotier-cli join %s failed (%s)", network_id, r.returncode)
    return r.ok
