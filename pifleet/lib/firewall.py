from __future__ import annotations

import logging
from typing import Dict

from .command import have_cmd, run_cmd

logger = logging.getLogger(__name__)

# record key -> (dump argv, restore argv)
TOOLS = {
    "nft": (["nft", "list", "ruleset"], ["nft", "-f", "-"]),
    "iptables": (["iptables-save"], ["iptables-restore"]),
}


def capture_rulesets() -> Dict[str, str]:
    """Dump rulesets of every available firewall tool; absent tools are omitted."""

    rulesets: Dict[str, str] = {}
    for key, (dump_argv, _) in TOOLS.items():
        if not have_cmd(dump_argv[0]):
            logger.info("Firewall tool %s not installed; skipping", dump_argv[0])
            continue
        r = run_cmd(dump_argv, check=False)
        if not r.ok:
            logger.warning("%s failed (%s); skipping", dump_argv[0], r.returncode)
            continue
        rulesets[key] = r.stdout
    return rulesets


def apply_ruleset(key: str, ruleset: str, *, dry_run: bool = False) -> bool:
    if key not in TOOLS:
        logger.warning("Unknown firewall subsystem %r; skipping", key)
        return False
    _, restore_argv = TOOLS[key]
    r = run_cmd(restore_argv, check=False, input_text=ruleset, dry_run=dry_run)
    if not r.ok:
        logger.warning("Restoring %s ruleset failed (%s): %s", key, r.returncode, r.stderr.strip())
    return r.ok
