"""Restorer: replay an audit record onto a target system."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional

from .context import RunContext
from .errors import AuditNotFoundError
from .lib.env import PATHS
from .pipeline import PipelineResult, Step, run_pipeline
from .record import load_record
from .steps import (
    ApplyFirewallStep,
    CopyCustomUnitsStep,
    EnableServicesStep,
    EnsureUsersStep,
    InstallCrontabsStep,
    InstallPackagesStep,
    RestoreEtcStep,
    RestoreHomeFilesStep,
    RestoreSshHostKeysStep,
    StageMountsStep,
)

logger = logging.getLogger(__name__)

AUDIT_NAME_RE = re.compile(re.escape(PATHS.audit_prefix) + r"(\d{14})\.json$")


def build_steps(*, restore_etc: bool = True) -> List[Step]:
    return [
        InstallPackagesStep(),
        EnsureUsersStep(),
        RestoreHomeFilesStep(),
        InstallCrontabsStep(),
        CopyCustomUnitsStep(),
        EnableServicesStep(),
        StageMountsStep(),
        ApplyFirewallStep(),
        RestoreSshHostKeysStep(),
        RestoreEtcStep(enabled=restore_etc),
    ]


def find_audit_document(search_dir: Path) -> Path:
    """Pick the newest system_audit_<timestamp>.json by embedded timestamp."""

    candidates = sorted(
        (p for p in search_dir.glob(f"{PATHS.audit_prefix}*.json") if AUDIT_NAME_RE.search(p.name)),
        key=lambda p: AUDIT_NAME_RE.search(p.name).group(1),  # type: ignore[union-attr]
    )
    if not candidates:
        raise AuditNotFoundError(f"No {PATHS.audit_prefix}<timestamp>.json found in {search_dir}")

    chosen = candidates[-1]
    if len(candidates) > 1:
        others = ", ".join(p.name for p in candidates[:-1])
        logger.warning("Several audit documents found; using newest %s (ignoring %s)", chosen.name, others)
    else:
        logger.info("Using audit document %s", chosen)
    return chosen


def resolve_audit_path(audit: Optional[str], search_dir: Path) -> Path:
    if not audit:
        return find_audit_document(search_dir)
    p = Path(audit)
    if not p.is_file():
        raise AuditNotFoundError(f"Audit JSON file not found: {audit}")
    return p


def run_restore(
    ctx: RunContext,
    *,
    restore_etc: bool = True,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    if ctx.audit_path is None or not ctx.audit_path.is_file():
        raise AuditNotFoundError(f"Audit JSON file not found: {ctx.audit_path}")

    logger.info("Starting system re-install from audit: %s", ctx.audit_path)
    record = load_record(ctx.audit_path)

    result = run_pipeline(
        ctx=ctx,
        record=record,
        steps=build_steps(restore_etc=restore_etc),
        start_at=start_at,
        stop_after=stop_after,
    )

    if result.failed_steps:
        logger.warning("Steps that raised: %s", ", ".join(result.failed_steps))
    logger.info("Re-install complete. Review the log for skipped or failed items.")
    logger.info(
        "Only APT packages, users, dotfiles, SSH keys, crontabs, systemd units, mounts and firewall rules "
        "are restored; pip, snap, flatpak packages and certificates are not."
    )
    return result
